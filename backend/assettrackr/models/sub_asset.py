"""SubAsset model: the unit of versioned delivery.

``current`` and ``history`` are JSON documents shaped like
``CurrentVersion`` and ``list[AssetVersion]``; they are always replaced
wholesale so SQLAlchemy notices the change.
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Text, Integer, DateTime, JSON, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from assettrackr.database import Base


class SubAsset(Base):
    __tablename__ = "sub_assets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id: Mapped[str] = mapped_column(String(64), ForeignKey("asset_groups.id", ondelete="CASCADE"), nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    required_format: Mapped[str] = mapped_column(String(16), nullable=False)
    versioning: Mapped[str] = mapped_column(String(16), nullable=False, default="folder")  # folder | filename
    base_path: Mapped[str] = mapped_column(Text, nullable=False)
    path_template: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    rules: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    current: Mapped[dict] = mapped_column(JSON, nullable=False)
    history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="needed")
    assignee_user_id: Mapped[str | None] = mapped_column(String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    group = relationship("AssetGroup", back_populates="children")

    __table_args__ = (
        UniqueConstraint("group_id", "key", name="uq_sub_assets_group_key"),
        Index("ix_sub_assets_group_id", "group_id"),
        Index("ix_sub_assets_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<SubAsset {self.key!r} v{self.current.get('version')} ({self.status})>"

"""AssetGroup model: a named collection owning an ordered list of sub-assets."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Text, Integer, DateTime, JSON, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from assettrackr.database import Base


class AssetGroup(Base):
    __tablename__ = "asset_groups"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id: Mapped[str] = mapped_column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    base_path: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    project = relationship("Project", back_populates="asset_groups")
    children = relationship(
        "SubAsset", back_populates="group", cascade="all, delete-orphan",
        order_by="SubAsset.position",
    )

    __table_args__ = (
        UniqueConstraint("project_id", "key", name="uq_asset_groups_project_key"),
        Index("ix_asset_groups_project_id", "project_id"),
    )

    def __repr__(self) -> str:
        return f"<AssetGroup {self.key!r} ({len(self.children)} children)>"

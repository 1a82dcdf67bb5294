"""UploadJob model: tracks a submitted batch of files through the ingestion stages."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Text, DateTime, JSON, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from assettrackr.database import Base


class UploadJob(Base):
    __tablename__ = "upload_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id: Mapped[str] = mapped_column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    sub_asset_id: Mapped[str | None] = mapped_column(String(64), ForeignKey("sub_assets.id", ondelete="SET NULL"), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="queued")  # queued | validating | converting | opened_pr | done | failed
    files: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    fixes_applied: Mapped[list | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    transitions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    project = relationship("Project", back_populates="upload_jobs")

    __table_args__ = (
        Index("ix_upload_jobs_project_id", "project_id"),
        Index("ix_upload_jobs_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<UploadJob {self.id[:8]} ({self.status})>"

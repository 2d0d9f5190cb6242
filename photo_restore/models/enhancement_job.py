"""Enhancement job model for the restoration audit ledger"""

from datetime import datetime
from sqlalchemy import Column, String, Text, ForeignKey, DateTime, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from photo_restore.models.base import OwnedModel, JSONType
import enum


class JobStatus(str, enum.Enum):
    """Enhancement job status lifecycle"""
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EnhancementJob(OwnedModel):
    """
    One request to the restoration model.
    Links an input version to the output version it produced, if any.
    """

    __tablename__ = "enhancement_jobs"

    photo_id = Column(
        Uuid(as_uuid=True), ForeignKey("photos.id"), nullable=False, index=True
    )
    input_version_id = Column(
        Uuid(as_uuid=True), ForeignKey("photo_versions.id"), nullable=False
    )
    output_version_id = Column(
        Uuid(as_uuid=True), ForeignKey("photo_versions.id"), nullable=True
    )
    status = Column(String(20), nullable=False, default=JobStatus.QUEUED.value, index=True)
    model_name = Column(String(100), nullable=False)
    model_version = Column(String(100), nullable=True)
    parameters = Column(JSONType, nullable=False, default=dict)
    error_message = Column(Text, nullable=True)
    queued_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)

    # Relationships
    photo = relationship("Photo", back_populates="jobs")
    input_version = relationship("PhotoVersion", foreign_keys=[input_version_id])
    output_version = relationship("PhotoVersion", foreign_keys=[output_version_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('queued', 'running', 'succeeded', 'failed')",
            name="check_enhancement_job_status",
        ),
        CheckConstraint(
            "status != 'succeeded' OR output_version_id IS NOT NULL",
            name="check_succeeded_job_has_output",
        ),
        CheckConstraint(
            "status != 'failed' OR (error_message IS NOT NULL AND output_version_id IS NULL)",
            name="check_failed_job_has_error",
        ),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.SUCCEEDED.value, JobStatus.FAILED.value)

    def __repr__(self):
        return f"<EnhancementJob(id={self.id}, photo_id={self.photo_id}, status={self.status})>"

"""Photo model"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    Boolean,
    Date,
    ForeignKey,
    CheckConstraint,
    Uuid,
    false,
)
from sqlalchemy.orm import relationship
from photo_restore.models.base import OwnedModel, SoftDeleteMixin


class Photo(SoftDeleteMixin, OwnedModel):
    """
    Photo model representing a logical photograph in a user's library.
    The pixels live in its versions; the photo itself only carries metadata.
    """

    __tablename__ = "photos"

    folder_id = Column(
        Uuid(as_uuid=True), ForeignKey("folders.id"), nullable=True, index=True
    )
    title = Column(String(255), nullable=False, default="Untitled")
    description = Column(Text, nullable=True)
    favorite = Column(Boolean, nullable=False, default=False, server_default=false())
    rating = Column(Integer, nullable=True)
    captured_date = Column(Date, nullable=True)
    assigned_date = Column(Date, nullable=True)

    # Relationships
    folder = relationship("Folder", back_populates="photos")
    versions = relationship(
        "PhotoVersion",
        back_populates="photo",
        order_by="PhotoVersion.created_at",
    )
    jobs = relationship(
        "EnhancementJob",
        back_populates="photo",
        order_by="EnhancementJob.queued_at",
    )
    tags = relationship("Tag", secondary="photo_tags", back_populates="photos")
    comments = relationship("Comment", back_populates="photo")

    __table_args__ = (
        CheckConstraint(
            "rating IS NULL OR (rating >= 0 AND rating <= 5)",
            name="check_photo_rating_range",
        ),
    )

    def __repr__(self):
        return f"<Photo(id={self.id}, title={self.title})>"

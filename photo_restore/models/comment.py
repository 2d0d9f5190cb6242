"""Comment model"""

from sqlalchemy import Column, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from photo_restore.models.base import OwnedModel, SoftDeleteMixin


class Comment(SoftDeleteMixin, OwnedModel):
    """Free-text note on a photo, optionally about one of its versions"""

    __tablename__ = "comments"

    photo_id = Column(
        Uuid(as_uuid=True), ForeignKey("photos.id"), nullable=False, index=True
    )
    version_id = Column(
        Uuid(as_uuid=True), ForeignKey("photo_versions.id"), nullable=True
    )
    body = Column(Text, nullable=False)

    # Relationships
    photo = relationship("Photo", back_populates="comments")

    def __repr__(self):
        return f"<Comment(id={self.id}, photo_id={self.photo_id})>"

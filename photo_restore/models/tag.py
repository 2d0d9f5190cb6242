"""Tag model"""

from sqlalchemy import Column, String, ForeignKey, Table, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from photo_restore.database import Base
from photo_restore.models.base import OwnedModel


photo_tags = Table(
    "photo_tags",
    Base.metadata,
    Column(
        "photo_id",
        Uuid(as_uuid=True),
        ForeignKey("photos.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Uuid(as_uuid=True),
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Tag(OwnedModel):
    """
    User-defined label. Tag names are unique per user and attached to photos
    through the photo_tags junction table.
    """

    __tablename__ = "tags"

    name = Column(String(100), nullable=False, index=True)

    # Relationships
    photos = relationship("Photo", secondary=photo_tags, back_populates="tags")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
    )

    def __repr__(self):
        return f"<Tag(id={self.id}, name={self.name})>"

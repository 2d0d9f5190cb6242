"""Photo version model"""

from sqlalchemy import Column, String, Text, Boolean, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship
from photo_restore.models.base import OwnedModel, SoftDeleteMixin


class PhotoVersion(SoftDeleteMixin, OwnedModel):
    """
    Immutable snapshot of a photo's pixels.

    parent_version_id records lineage only (which version this one was derived
    from); the bytes are owned through storage_object_id.
    """

    __tablename__ = "photo_versions"

    photo_id = Column(
        Uuid(as_uuid=True), ForeignKey("photos.id"), nullable=False, index=True
    )
    storage_object_id = Column(
        Uuid(as_uuid=True), ForeignKey("storage_objects.id"), nullable=False
    )
    is_original = Column(Boolean, nullable=False, default=False)
    parent_version_id = Column(
        Uuid(as_uuid=True), ForeignKey("photo_versions.id"), nullable=True
    )
    label = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    photo = relationship("Photo", back_populates="versions")
    storage_object = relationship("StorageObject", back_populates="versions", lazy="joined")
    parent_version = relationship("PhotoVersion", remote_side="PhotoVersion.id")

    __table_args__ = (
        # One live original per photo
        Index(
            "uq_photo_versions_one_original",
            "photo_id",
            unique=True,
            postgresql_where=text("is_original AND deleted_at IS NULL"),
            sqlite_where=text("is_original = 1 AND deleted_at IS NULL"),
        ),
    )

    def __repr__(self):
        return (
            f"<PhotoVersion(id={self.id}, photo_id={self.photo_id}, "
            f"is_original={self.is_original})>"
        )

"""Storage object model"""

from sqlalchemy import Column, String, Integer, BigInteger, UniqueConstraint
from sqlalchemy.orm import relationship
from photo_restore.models.base import OwnedModel


class StorageObject(OwnedModel):
    """
    Metadata for one blob in the object store.
    Rows are never updated in place: every upload creates a new object.
    """

    __tablename__ = "storage_objects"

    bucket = Column(String(100), nullable=False)
    object_key = Column(String(500), nullable=False)
    checksum_sha256 = Column(String(64), nullable=False)
    byte_size = Column(BigInteger, nullable=False)
    mime_type = Column(String(50), nullable=False)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)

    # Relationships
    versions = relationship("PhotoVersion", back_populates="storage_object")

    __table_args__ = (
        UniqueConstraint("bucket", "object_key", name="uq_storage_objects_bucket_key"),
    )

    def __repr__(self):
        return f"<StorageObject(id={self.id}, object_key={self.object_key})>"

"""Folder model"""

from sqlalchemy import Column, String, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from photo_restore.models.base import OwnedModel, SoftDeleteMixin


class Folder(SoftDeleteMixin, OwnedModel):
    """
    Folder in a user's library. parent_id forms a tree; the schema does not
    prevent cycles, FolderService does.
    """

    __tablename__ = "folders"

    parent_id = Column(
        Uuid(as_uuid=True), ForeignKey("folders.id"), nullable=True, index=True
    )
    name = Column(String(255), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0, server_default="0")

    # Relationships
    photos = relationship("Photo", back_populates="folder")

    def __repr__(self):
        return f"<Folder(id={self.id}, name={self.name})>"

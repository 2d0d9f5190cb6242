"""Profile model"""

from sqlalchemy import Column, String
from photo_restore.models.base import BaseModel


class Profile(BaseModel):
    """
    Per-user profile. The id is the identity provider's user id; users
    themselves live with the provider.
    """

    __tablename__ = "profiles"

    display_name = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Profile(id={self.id}, display_name={self.display_name})>"

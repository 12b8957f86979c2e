"""SQLAlchemy model for provider links (many per user)."""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from authvault.persistence.sqlalchemy.base import AuthBase


class UserProviderModel(AuthBase):
    __tablename__ = "user_providers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    # Serialized payload, never decoded here
    data: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<UserProviderModel(id={self.id}, user_id={self.user_id}, "
            f"provider={self.provider})>"
        )

"""SQLAlchemy model for login credentials.

One row per (email, strategy). Password hashes and salts are produced by
the caller; this layer never sees plain passwords.
"""

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from authvault.persistence.sqlalchemy.base import AuthBase


class CredentialsModel(AuthBase):
    __tablename__ = "credentials"
    __table_args__ = (
        UniqueConstraint("email", "strategy", name="uq_credentials_email_strategy"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    salt: Mapped[str] = mapped_column(String(255), nullable=False)
    strategy: Mapped[str] = mapped_column(String(32), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<CredentialsModel(id={self.id}, user_id={self.user_id}, "
            f"strategy={self.strategy})>"
        )

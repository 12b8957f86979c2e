"""SQLAlchemy model for issued session tokens.

Rows are never deleted; revocation flips ``revoked``. Whether a row is
still valid is computed on read from ``created`` and ``lifetime``.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, false, func
from sqlalchemy.orm import Mapped, mapped_column

from authvault.domain.time import utc_now
from authvault.persistence.sqlalchemy.base import AuthBase


class UserTokenPairModel(AuthBase):
    __tablename__ = "user_token_pairs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    lifetime: Mapped[int] = mapped_column(Integer, nullable=False)
    strategy: Mapped[str] = mapped_column(String(32), nullable=False)
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    revoked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    def __repr__(self) -> str:
        return (
            f"<UserTokenPairModel(id={self.id}, user_id={self.user_id}, "
            f"revoked={self.revoked})>"
        )

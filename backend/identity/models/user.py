from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, SmallInteger, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from identity.db.base import Base
from identity.models.enums import Role, UserState


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    state: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=int(UserState.ACTIVE))
    role: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=int(Role.REGULAR))
    agreed_to_cookie_policy: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Raw provider id plus its SHA-256; the hash is the de-duplication key.
    external_identity_id: Mapped[str] = mapped_column(String(128), nullable=False)
    external_identity_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)

    # Last-seen provider profile, overwritten on every sign-in.
    external_profile: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=dict,
    )

    time_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    time_last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    time_removed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

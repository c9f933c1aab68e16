from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, SmallInteger, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from identity.db.base import Base
from identity.models.enums import SessionState


class Session(Base):
    __tablename__ = "sessions"

    # The id doubles as the cookie token.
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    state: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=int(SessionState.ACTIVE))
    xsrf_token: Mapped[str] = mapped_column(String(64), nullable=False)
    agreed_to_cookie_policy: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Set at most once, never cleared.
    user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=True)

    time_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    time_last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    time_removed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

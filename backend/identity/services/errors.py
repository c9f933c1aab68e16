from __future__ import annotations

from collections.abc import Iterable


class RepositoryError(Exception):
    pass


class SessionNotFoundError(RepositoryError):
    pass


class UserNotFoundError(RepositoryError):
    def __init__(self, message: str, *, missing_ids: Iterable[int] = ()):
        super().__init__(message)
        self.missing_ids = sorted(missing_ids)


class XsrfTokenMismatchError(RepositoryError):
    pass

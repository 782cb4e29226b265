"""Subject: who is asking for access. Built per request, never persisted."""

from dataclasses import dataclass
from typing import Optional


ANONYMOUS_SUBJECT_ID = "anonymous"


@dataclass(frozen=True)
class Subject:
    """An authenticated user with a resolved tier, or the anonymous subject.

    When the upstream tier lookup failed, ``resolution_error`` is set instead of
    a tier and every gated decision for this subject fails closed.
    """

    subject_id: Optional[str] = None
    tier: Optional[str] = None
    resolution_error: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "Subject":
        return cls()

    @classmethod
    def user(cls, user_id: str, tier: Optional[str]) -> "Subject":
        return cls(subject_id=user_id, tier=tier)

    @classmethod
    def failed(cls, user_id: Optional[str], error: str) -> "Subject":
        return cls(subject_id=user_id, resolution_error=error or "tier lookup failed")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.subject_id)

    @property
    def log_id(self) -> str:
        """Id shown in logs. Not an identity: a user may be named "anonymous"."""
        return self.subject_id or ANONYMOUS_SUBJECT_ID

    @property
    def cache_key(self) -> Optional[str]:
        """Cache identity; None for the anonymous subject, which no user id can equal."""
        return self.subject_id or None

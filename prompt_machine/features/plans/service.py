"""
prompt_machine/features/plans/service.py

Subscription tier directory.

Handles:
- User tier assignment (validated against the tier hierarchy)
- Current tier lookup (users without an assignment sit on the lowest tier)
- Tier-change hooks (the access cache subscribes to drop stale decisions)

Billing lives elsewhere; this only records which tier a user currently holds.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from prompt_machine.core.errors import ValidationError
from prompt_machine.features.access.tiers import DEFAULT_HIERARCHY, TierHierarchy, normalize_tier

logger = logging.getLogger("prompt_machine")

TierChangeHook = Callable[[str, Optional[str], str], None]


class UserTier:
    __slots__ = ("user_id", "tier", "assigned_at")

    def __init__(self, user_id: str, tier: str, assigned_at: datetime):
        self.user_id = user_id
        self.tier = tier
        self.assigned_at = assigned_at

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "tier": self.tier,
            "assignedAt": self.assigned_at.isoformat(),
        }


class PlanService:
    def __init__(self, tiers: TierHierarchy = DEFAULT_HIERARCHY, now_fn: Callable[[], datetime] = None):
        self.tiers = tiers
        self.now_fn = now_fn or (lambda: datetime.now(timezone.utc))
        self._assignments: Dict[str, UserTier] = {}
        self._hooks: List[TierChangeHook] = []
        self._lock = threading.Lock()

    def on_tier_change(self, hook: TierChangeHook) -> None:
        """Register a callback fired as hook(user_id, old_tier, new_tier)."""
        with self._lock:
            self._hooks.append(hook)

    def get_user_tier(self, user_id: str) -> str:
        with self._lock:
            assignment = self._assignments.get(user_id)
        return assignment.tier if assignment else self.tiers.lowest

    def assign_tier(self, user_id: str, tier: str) -> UserTier:
        """
        Record a user's current tier (idempotent).

        Raises:
            ValidationError: empty user id or a tier outside the hierarchy
        """
        if not user_id or not user_id.strip():
            raise ValidationError("user_id is required")
        name = normalize_tier(tier)
        if not self.tiers.is_known(name):
            raise ValidationError(f"Unknown tier: {tier!r}")

        with self._lock:
            previous = self._assignments.get(user_id)
            assignment = UserTier(user_id=user_id, tier=name, assigned_at=self.now_fn())
            self._assignments[user_id] = assignment
            hooks = list(self._hooks)

        old_tier = previous.tier if previous else None
        logger.info(
            "plans.tier_assigned",
            extra={"user_id": user_id, "event_type": "tier_change", "subject_tier": name},
        )
        for hook in hooks:
            hook(user_id, old_tier, name)
        return assignment

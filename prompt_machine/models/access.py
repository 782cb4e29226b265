"""Access decision and filtering result types."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from prompt_machine.models.field import Field


REASON_INSUFFICIENT_TIER = "insufficient tier"
REASON_CHECK_FAILED = "access check failed"
REASON_NOT_AUTHENTICATED = "authentication required"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[str] = None
    required_tier: Optional[str] = None
    level: Optional[str] = None

    @classmethod
    def allow(cls, level: Optional[str] = None) -> "AccessDecision":
        return cls(allowed=True, level=level)

    @classmethod
    def deny(cls, reason: str, required_tier: Optional[str] = None, level: Optional[str] = None) -> "AccessDecision":
        return cls(allowed=False, reason=reason, required_tier=required_tier, level=level)

    @property
    def failed_closed(self) -> bool:
        return not self.allowed and self.reason == REASON_CHECK_FAILED

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"allowed": self.allowed}
        if self.reason is not None:
            payload["reason"] = self.reason
        if self.required_tier is not None:
            payload["requiredTier"] = self.required_tier
        if self.level is not None:
            payload["level"] = self.level
        return payload


@dataclass(frozen=True)
class BlockedField:
    field_id: str
    field_label: str
    required_tier: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fieldId": self.field_id,
            "fieldLabel": self.field_label,
            "requiredTier": self.required_tier,
        }


@dataclass
class FilterResult:
    """Outcome of partitioning one submission's responses by access."""

    accessible: Dict[str, Any]
    blocked: List[BlockedField]
    accessible_fields: List[Field]
    total_fields: int
    ignored_count: int = 0

    @property
    def accessible_count(self) -> int:
        return len(self.accessible)

    @property
    def blocked_count(self) -> int:
        return len(self.blocked)

    def counts(self) -> Dict[str, int]:
        return {
            "totalFields": self.total_fields,
            "accessibleCount": self.accessible_count,
            "blockedCount": self.blocked_count,
            "ignoredCount": self.ignored_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessible": dict(self.accessible),
            "blocked": [b.to_dict() for b in self.blocked],
            **self.counts(),
        }


@dataclass(frozen=True)
class FieldAccessEntry:
    field: Field
    decision: AccessDecision
    upgrade_required: Optional[str] = None  # display name of the unlocking tier

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fieldId": self.field.field_id,
            "label": self.field.label,
            "fieldType": self.field.field_type,
            "stepOrder": self.field.step_order,
            "fieldOrder": self.field.field_order,
            "isAccessible": self.decision.allowed,
            "isLocked": not self.decision.allowed,
            "requiredTier": self.field.required_tier,
            "upgradeRequired": self.upgrade_required,
        }


@dataclass
class FieldAccessOverview:
    accessible: List[FieldAccessEntry] = field(default_factory=list)
    upgradeable: List[FieldAccessEntry] = field(default_factory=list)
    locked: List[FieldAccessEntry] = field(default_factory=list)

    @property
    def total_fields(self) -> int:
        return len(self.accessible) + len(self.upgradeable) + len(self.locked)

    @property
    def access_percentage(self) -> int:
        total = self.total_fields
        if total == 0:
            return 100
        return int(len(self.accessible) / total * 100 + 0.5)

    def summary(self) -> Dict[str, int]:
        return {
            "totalFields": self.total_fields,
            "accessibleCount": len(self.accessible),
            "lockedCount": len(self.locked),
            "upgradeableCount": len(self.upgradeable),
            "accessPercentage": self.access_percentage,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessible": [e.to_dict() for e in self.accessible],
            "upgradeable": [e.to_dict() for e in self.upgradeable],
            "locked": [e.to_dict() for e in self.locked],
            "summary": self.summary(),
        }

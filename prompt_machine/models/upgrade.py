"""Upgrade prompt models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


PromptKind = Literal["upgrade", "locked"]


@dataclass(frozen=True)
class PromptTemplate:
    """Author/admin supplied copy for one unlocking tier. Blank parts fall back to defaults."""

    title: Optional[str] = None
    message: Optional[str] = None
    cta_text: Optional[str] = None
    cta_url: Optional[str] = None


@dataclass(frozen=True)
class LockedFeature:
    field_id: str
    name: str
    required_tier: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fieldId": self.field_id,
            "name": self.name,
            "description": self.description,
            "requiredTier": self.required_tier,
        }


@dataclass
class UpgradePrompt:
    kind: PromptKind
    title: str
    message: str
    cta_text: str
    cta_url: str
    unlock_tier: str
    unlock_tier_name: str
    current_tier: str
    features: List[LockedFeature] = field(default_factory=list)
    upgrade_path: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
            "cta": {"text": self.cta_text, "url": self.cta_url},
            "features": [f.to_dict() for f in self.features],
            "unlockTier": self.unlock_tier,
            "unlockTierName": self.unlock_tier_name,
            "currentTier": self.current_tier,
            "upgradePath": list(self.upgrade_path),
        }

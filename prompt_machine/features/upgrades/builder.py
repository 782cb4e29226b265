"""
Upgrade prompt builder.

Turns the fields a subject was denied into a single "what you're missing"
prompt pointing at the cheapest tier that unlocks all of them.

Copy is per-tier configurable; anything left blank falls back to defaults.
"""

from typing import Dict, Iterable, List, Optional

from prompt_machine.features.access.tiers import DEFAULT_HIERARCHY, TierHierarchy
from prompt_machine.models.access import BlockedField
from prompt_machine.models.upgrade import LockedFeature, PromptTemplate, UpgradePrompt


DEFAULT_CTA_TEXT = "Upgrade Now"
DEFAULT_CTA_URL = "/pricing"

FIELD_DENIED_TEMPLATE = PromptTemplate(
    title="Upgrade to Premium",
    message="This field requires a premium subscription",
    cta_text=DEFAULT_CTA_TEXT,
    cta_url=DEFAULT_CTA_URL,
)


class UpgradePromptBuilder:
    def __init__(
        self,
        tiers: TierHierarchy = DEFAULT_HIERARCHY,
        templates: Optional[Dict[str, PromptTemplate]] = None,
        cta_text: str = DEFAULT_CTA_TEXT,
        cta_url: str = DEFAULT_CTA_URL,
    ):
        self.tiers = tiers
        self.templates = {self.tiers.canonical(k): v for k, v in (templates or {}).items()}
        self.cta_text = cta_text or DEFAULT_CTA_TEXT
        self.cta_url = cta_url or DEFAULT_CTA_URL

    def build(self, blocked: Iterable[BlockedField], subject_tier: Optional[str]) -> Optional[UpgradePrompt]:
        """Prompt for the blocked fields, or None when nothing is actually locked.

        The headline tier is the highest tier any blocked field requires, since
        only that tier unlocks the whole list. Kind is ``upgrade`` when that tier
        is the next one up, ``locked`` when it is further away.
        """
        current = self.tiers.canonical(subject_tier)
        locked = [b for b in blocked if not self.tiers.at_least(current, b.required_tier)]
        if not locked:
            return None

        unlock_tier = self.tiers.canonical(self.tiers.highest(b.required_tier for b in locked))
        unlock_name = self.tiers.display_name(unlock_tier)
        adjacent = self.tiers.is_adjacent(current, unlock_tier)
        labels = [b.field_label or b.field_id for b in locked]
        template = self.templates.get(unlock_tier, PromptTemplate())

        if adjacent:
            title = f"Unlock {len(locked)} {unlock_name} Features"
            message = (
                f"Upgrade to {unlock_name} to access advanced analysis features including: "
                f"{', '.join(labels)}"
            )
        else:
            title = f"{len(locked)} Features Locked"
            message = f"These features require the {unlock_name} plan: {', '.join(labels)}"

        return UpgradePrompt(
            kind="upgrade" if adjacent else "locked",
            title=template.title or title,
            message=template.message or message,
            cta_text=template.cta_text or self.cta_text,
            cta_url=template.cta_url or self.cta_url,
            unlock_tier=unlock_tier,
            unlock_tier_name=unlock_name,
            current_tier=current,
            features=[
                LockedFeature(
                    field_id=b.field_id,
                    name=b.field_label or b.field_id,
                    required_tier=b.required_tier,
                    description=b.description,
                )
                for b in locked
            ],
            upgrade_path=self.tiers.upgrade_path(current, unlock_tier),
        )

    def field_denied_prompt(self, required_tier: Optional[str] = None) -> Dict[str, str]:
        """Copy for the single-field 403 body."""
        template = self.templates.get(self.tiers.canonical(required_tier)) if required_tier else None
        template = template or PromptTemplate()
        return {
            "title": template.title or FIELD_DENIED_TEMPLATE.title,
            "message": template.message or FIELD_DENIED_TEMPLATE.message,
            "cta_text": template.cta_text or self.cta_text,
            "cta_url": template.cta_url or self.cta_url,
        }

    def build_all(self, blocked: List[BlockedField], subject_tier: Optional[str]) -> List[UpgradePrompt]:
        prompt = self.build(blocked, subject_tier)
        return [prompt] if prompt is not None else []

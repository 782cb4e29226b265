"""
Subscription tier hierarchy.

Tier hierarchy (index = access level, higher = more access):
  free < registered < basic < premium < enterprise

Comparisons are always rank comparisons. Unknown or misconfigured tier names
degrade to rank 0 (free) instead of raising.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

DEFAULT_TIERS: Tuple[Tuple[str, str], ...] = (
    ("free", "Free"),
    ("registered", "Registered"),
    ("basic", "Basic"),
    ("premium", "Premium"),
    ("enterprise", "Enterprise"),
)


def normalize_tier(tier: Optional[str]) -> str:
    return str(tier or "").strip().lower()


class TierHierarchy:
    """Fixed total order over named subscription tiers."""

    def __init__(self, tiers: Sequence[Tuple[str, str]] = DEFAULT_TIERS):
        if not tiers:
            raise ValueError("tier hierarchy needs at least one tier")
        self._names: Tuple[str, ...] = tuple(normalize_tier(name) for name, _ in tiers)
        if len(set(self._names)) != len(self._names):
            raise ValueError("tier names must be unique")
        self._ranks: Dict[str, int] = {name: rank for rank, name in enumerate(self._names)}
        self._display: Dict[str, str] = {normalize_tier(name): label for name, label in tiers}

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    @property
    def lowest(self) -> str:
        return self._names[0]

    def is_known(self, tier: Optional[str]) -> bool:
        return normalize_tier(tier) in self._ranks

    def rank(self, tier: Optional[str]) -> int:
        return self._ranks.get(normalize_tier(tier), 0)

    def at_least(self, subject_tier: Optional[str], required_tier: Optional[str]) -> bool:
        return self.rank(subject_tier) >= self.rank(required_tier)

    def is_adjacent(self, current_tier: Optional[str], required_tier: Optional[str]) -> bool:
        """True when required_tier is exactly one step above current_tier."""
        return self.rank(required_tier) == self.rank(current_tier) + 1

    def canonical(self, tier: Optional[str]) -> str:
        """Known tier name, or the lowest tier for anything unknown."""
        return self._names[self.rank(tier)]

    def display_name(self, tier: Optional[str]) -> str:
        name = normalize_tier(tier)
        if name in self._display:
            return self._display[name]
        return name.title() if name else self._display[self.lowest]

    def highest(self, tiers: Iterable[Optional[str]]) -> Optional[str]:
        """Highest-ranked tier of the iterable; the first one wins ties."""
        best: Optional[str] = None
        for tier in tiers:
            if best is None or self.rank(tier) > self.rank(best):
                best = tier
        return best

    def upgrade_path(self, current_tier: Optional[str], target_tier: Optional[str]) -> List[str]:
        """Tiers strictly above current up to and including target."""
        start = self.rank(current_tier)
        end = self.rank(target_tier)
        return list(self._names[start + 1:end + 1])


DEFAULT_HIERARCHY = TierHierarchy()

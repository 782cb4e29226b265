"""
prompt_machine/features/access/resolver.py

Field- and project-level access decisions.

Handles:
- Field gating by required tier (null requirement = open to everyone)
- Project gating (public, owner, required tier, registered-only default)
- Upgrade adjacency (one tier away vs several tiers away)
- Cache consult/populate around field decisions

Denial is a return value. Any failure while working out the subject's tier
fails closed, and fail-closed decisions are never cached.
"""

import logging
from typing import Dict, Iterable, Optional

from prompt_machine.core.metrics import access_decisions_total, access_denied_total
from prompt_machine.features.access.cache import AccessCache, NullAccessCache
from prompt_machine.features.access.tiers import DEFAULT_HIERARCHY, TierHierarchy
from prompt_machine.models.access import (
    REASON_CHECK_FAILED,
    REASON_INSUFFICIENT_TIER,
    REASON_NOT_AUTHENTICATED,
    AccessDecision,
    FieldAccessEntry,
    FieldAccessOverview,
)
from prompt_machine.models.field import Field, Project, order_fields
from prompt_machine.models.subject import Subject

logger = logging.getLogger("prompt_machine")


class TierResolutionError(RuntimeError):
    """The subject's current tier could not be determined."""


class PermissionResolver:
    def __init__(self, tiers: TierHierarchy = DEFAULT_HIERARCHY, cache: Optional[AccessCache] = None):
        self.tiers = tiers
        self.cache = cache if cache is not None else NullAccessCache()

    def subject_tier(self, subject: Subject) -> str:
        """Canonical tier for the subject; anonymous subjects sit on the lowest tier."""
        if subject.resolution_error:
            raise TierResolutionError(subject.resolution_error)
        if not subject.is_authenticated:
            return self.tiers.lowest
        return self.tiers.canonical(subject.tier)

    def compute_upgrade_adjacency(self, subject_tier: Optional[str], required_tier: Optional[str]) -> bool:
        return self.tiers.is_adjacent(subject_tier, required_tier)

    def _decide_field(self, subject: Subject, field: Field) -> AccessDecision:
        if not field.required_tier:
            return AccessDecision.allow()
        if self.tiers.at_least(self.subject_tier(subject), field.required_tier):
            return AccessDecision.allow()
        return AccessDecision.deny(REASON_INSUFFICIENT_TIER, required_tier=field.required_tier)

    def resolve_field_access(self, subject: Subject, field: Field, project_id: str = "") -> AccessDecision:
        """Decision for one field of one project.

        Field ids are only unique within a project, so callers resolving fields
        of a stored project must pass its id to keep cache entries apart.
        """
        if not field.required_tier:
            # Open fields never depend on the subject, so they cannot fail.
            decision = self._cached_or_compute(subject, field, project_id)
        elif subject.resolution_error:
            decision = self._fail_closed(subject, field.field_id, field.required_tier, subject.resolution_error)
        else:
            decision = self._cached_or_compute(subject, field, project_id)

        if not decision.allowed:
            access_denied_total.inc(labels={"scope": "field"})
        return decision

    def _cached_or_compute(self, subject: Subject, field: Field, project_id: str) -> AccessDecision:
        key = (subject.cache_key, project_id, field.field_id)
        cached = self.cache.get(key)
        if cached is not None:
            access_decisions_total.inc(labels={"source": "cache"})
            return cached

        try:
            decision = self._decide_field(subject, field)
        except Exception as exc:
            return self._fail_closed(subject, field.field_id, field.required_tier, str(exc))

        access_decisions_total.inc(labels={"source": "computed"})
        self.cache.put(key, decision)
        if not decision.allowed:
            logger.debug(
                "access.field_denied",
                extra={
                    "user_id": subject.log_id,
                    "project_id": project_id or None,
                    "field_id": field.field_id,
                    "required_tier": decision.required_tier,
                    "subject_tier": subject.tier,
                },
            )
        return decision

    def _fail_closed(self, subject: Subject, target_id: str, required_tier: Optional[str], error: str) -> AccessDecision:
        access_decisions_total.inc(labels={"source": "failed"})
        logger.warning(
            "access.fail_closed",
            extra={
                "user_id": subject.log_id,
                "field_id": target_id,
                "required_tier": required_tier,
                "error_code": "tier_resolution_failed",
                "error_message": error,
            },
        )
        return AccessDecision.deny(REASON_CHECK_FAILED, required_tier=required_tier)

    def resolve_project_access(self, subject: Subject, project: Project) -> AccessDecision:
        try:
            decision = self._decide_project(subject, project)
        except Exception as exc:
            decision = self._fail_closed(subject, project.project_id, project.required_tier, str(exc))
        if not decision.allowed:
            access_denied_total.inc(labels={"scope": "project"})
        return decision

    def _decide_project(self, subject: Subject, project: Project) -> AccessDecision:
        if project.is_public:
            return AccessDecision.allow(level="public")

        if subject.is_authenticated and project.owner_id and subject.subject_id == project.owner_id:
            return AccessDecision.allow(level="owner")

        if project.required_tier:
            if self.tiers.at_least(self.subject_tier(subject), project.required_tier):
                return AccessDecision.allow(level="subscriber")
            return AccessDecision.deny(
                REASON_INSUFFICIENT_TIER,
                required_tier=project.required_tier,
                level="restricted",
            )

        # Default: any registered user
        if subject.is_authenticated:
            return AccessDecision.allow(level="registered")
        return AccessDecision.deny(REASON_NOT_AUTHENTICATED, level="registered")

    def batch_resolve(self, subject: Subject, fields: Iterable[Field], project_id: str = "") -> Dict[str, AccessDecision]:
        return {field.field_id: self.resolve_field_access(subject, field, project_id) for field in fields}

    def field_overview(self, subject: Subject, fields: Iterable[Field], project_id: str = "") -> FieldAccessOverview:
        """Categorize fields into accessible, upgradeable (one tier away) and locked."""
        overview = FieldAccessOverview()
        try:
            current_tier: Optional[str] = self.subject_tier(subject)
        except TierResolutionError:
            current_tier = None

        for field in order_fields(list(fields)):
            decision = self.resolve_field_access(subject, field, project_id)
            if decision.allowed:
                overview.accessible.append(FieldAccessEntry(field=field, decision=decision))
                continue

            entry = FieldAccessEntry(
                field=field,
                decision=decision,
                upgrade_required=self.tiers.display_name(field.required_tier),
            )
            if current_tier is not None and self.compute_upgrade_adjacency(current_tier, field.required_tier):
                overview.upgradeable.append(entry)
            else:
                overview.locked.append(entry)
        return overview

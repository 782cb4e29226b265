"""
Shared FastAPI dependencies.

Process-wide singletons are built lazily and cached; tests swap them with
``app.dependency_overrides`` or call ``reset_dependencies()``.
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from prompt_machine.core.config import settings
from prompt_machine.features.access.cache import AccessCache, AccessDecisionCache, NullAccessCache
from prompt_machine.features.access.resolver import PermissionResolver
from prompt_machine.features.access.tiers import DEFAULT_HIERARCHY
from prompt_machine.features.calculation.engine import CalculationEngine
from prompt_machine.features.plans.service import PlanService
from prompt_machine.features.projects.store import ProjectStore
from prompt_machine.features.submissions.service import SubmissionService
from prompt_machine.features.upgrades.builder import UpgradePromptBuilder
from prompt_machine.models.subject import Subject

logger = logging.getLogger("prompt_machine")


@lru_cache(maxsize=1)
def get_access_cache() -> AccessCache:
    if not settings.ACCESS_CACHE_ENABLED:
        return NullAccessCache()
    return AccessDecisionCache(
        ttl_seconds=settings.ACCESS_CACHE_TTL_SECONDS,
        max_entries=settings.ACCESS_CACHE_MAX_ENTRIES,
    )


@lru_cache(maxsize=1)
def get_plan_service() -> PlanService:
    service = PlanService(tiers=DEFAULT_HIERARCHY)
    service.on_tier_change(lambda user_id, old, new: get_access_cache().invalidate(subject_id=user_id))
    return service


@lru_cache(maxsize=1)
def get_project_store() -> ProjectStore:
    store = ProjectStore()
    # Field permissions may have changed; drop every decision for the project.
    store.on_replace(lambda old, new: get_access_cache().invalidate(project_id=new.project_id))
    return store


@lru_cache(maxsize=1)
def get_resolver() -> PermissionResolver:
    return PermissionResolver(tiers=DEFAULT_HIERARCHY, cache=get_access_cache())


@lru_cache(maxsize=1)
def get_upgrade_builder() -> UpgradePromptBuilder:
    return UpgradePromptBuilder(
        tiers=DEFAULT_HIERARCHY,
        cta_text=settings.UPGRADE_CTA_TEXT,
        cta_url=settings.UPGRADE_CTA_URL,
    )


@lru_cache(maxsize=1)
def get_submission_service() -> SubmissionService:
    return SubmissionService(
        resolver=get_resolver(),
        engine=CalculationEngine(base_score=settings.CALCULATION_BASE_SCORE),
        prompts=get_upgrade_builder(),
    )


def reset_dependencies() -> None:
    for builder in (
        get_access_cache,
        get_plan_service,
        get_project_store,
        get_resolver,
        get_upgrade_builder,
        get_submission_service,
    ):
        builder.cache_clear()


def get_subject(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    plans: PlanService = Depends(get_plan_service),
) -> Subject:
    """Build the request subject. Absent header means anonymous.

    A failed tier lookup does not fail the request; the subject carries the
    error and every gated decision for it is denied.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        return Subject.anonymous()
    try:
        tier = plans.get_user_tier(user_id)
    except Exception as exc:
        logger.warning(
            "subject.tier_lookup_failed",
            extra={"user_id": user_id, "error_code": "tier_lookup_failed", "error_message": str(exc)},
        )
        return Subject.failed(user_id, str(exc))
    return Subject.user(user_id, tier)

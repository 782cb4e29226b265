"""
Submission handling: filter, calculate, prompt.

The one place the access core is wired end to end. Every caller that scores a
submission goes through here so gating and scoring stay consistent.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from prompt_machine.core.logging import log_event
from prompt_machine.core.metrics import calculations_total
from prompt_machine.features.access.filter import ResponseFilter
from prompt_machine.features.access.resolver import PermissionResolver, TierResolutionError
from prompt_machine.features.calculation.engine import CalculationEngine, default_strategy_for_tool_type
from prompt_machine.features.upgrades.builder import UpgradePromptBuilder
from prompt_machine.models.access import FilterResult
from prompt_machine.models.calculation import CalculationResult
from prompt_machine.models.field import Project
from prompt_machine.models.subject import Subject
from prompt_machine.models.upgrade import UpgradePrompt


@dataclass
class SubmissionOutcome:
    strategy: str
    result: CalculationResult
    access: FilterResult
    upgrade_prompts: List[UpgradePrompt] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": True,
            "data": self.result.to_dict(),
            "access": self.access.counts(),
        }
        if self.upgrade_prompts:
            payload["upgradePrompts"] = [p.to_dict() for p in self.upgrade_prompts]
        return payload


class SubmissionService:
    def __init__(
        self,
        resolver: PermissionResolver,
        engine: Optional[CalculationEngine] = None,
        prompts: Optional[UpgradePromptBuilder] = None,
    ):
        self.resolver = resolver
        self.filter = ResponseFilter(resolver)
        self.engine = engine or CalculationEngine()
        self.prompts = prompts or UpgradePromptBuilder(tiers=resolver.tiers)

    def strategy_for(self, project: Project, requested: Optional[str] = None) -> str:
        """Explicit request, then the project's configured strategy, then the tool-type default."""
        if requested and requested.strip():
            return requested.strip().lower()
        if project.calculation_strategy:
            return project.calculation_strategy.strip().lower()
        return default_strategy_for_tool_type(project.tool_type)

    def submit(
        self,
        project: Project,
        responses: Mapping[str, Any],
        subject: Subject,
        strategy: Optional[str] = None,
    ) -> SubmissionOutcome:
        """
        Score a submission using only what the subject may see.

        Raises:
            UnknownStrategyError: strategy name not registered
        """
        name = self.strategy_for(project, strategy)
        filtered = self.filter.filter(responses, project.fields, subject, project.project_id)
        result = self.engine.calculate(
            name,
            filtered.accessible,
            filtered.accessible_fields,
            project.calculation_rules,
        )
        calculations_total.inc(labels={"strategy": name})

        try:
            current_tier = self.resolver.subject_tier(subject)
        except TierResolutionError:
            current_tier = self.resolver.tiers.lowest
        prompts = self.prompts.build_all(filtered.blocked, current_tier)

        log_event(
            "info",
            "submission.calculated",
            user_id=subject.log_id,
            project_id=project.project_id,
            strategy=name,
            event_type="submission",
            extra={
                "accessible_count": filtered.accessible_count,
                "blocked_count": filtered.blocked_count,
            },
        )
        return SubmissionOutcome(strategy=name, result=result, access=filtered, upgrade_prompts=prompts)

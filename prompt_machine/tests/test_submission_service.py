"""Tests for the filter -> calculate -> prompt flow."""

import pytest

from prompt_machine.core.errors import UnknownStrategyError
from prompt_machine.core.metrics import calculations_total
from prompt_machine.features.access.resolver import PermissionResolver
from prompt_machine.features.submissions.service import SubmissionService
from prompt_machine.models.field import Project
from prompt_machine.models.subject import Subject


def _service():
    return SubmissionService(PermissionResolver())


def test_scores_only_accessible_responses(assessment_project):
    outcome = _service().submit(
        assessment_project,
        {"stage": "revenue", "market": "deep"},
        Subject.user("u1", "basic"),
    )

    assert outcome.strategy == "weighted"
    assert outcome.result.score == 70.0
    assert outcome.access.counts()["blockedCount"] == 1
    assert calculations_total.value({"strategy": "weighted"}) == 1


def test_upgrade_prompt_for_blocked_fields(assessment_project):
    outcome = _service().submit(assessment_project, {"market": "deep"}, Subject.user("u1", "basic"))

    payload = outcome.to_dict()
    assert payload["success"] is True
    assert len(payload["upgradePrompts"]) == 1
    assert payload["upgradePrompts"][0]["kind"] == "upgrade"
    assert payload["upgradePrompts"][0]["unlockTier"] == "premium"


def test_no_prompt_when_nothing_blocked(assessment_project):
    outcome = _service().submit(assessment_project, {"stage": "idea"}, Subject.user("u1", "enterprise"))
    assert "upgradePrompts" not in outcome.to_dict()
    assert outcome.result.score == 30.0


def test_strategy_resolution_order(assessment_project):
    service = _service()
    assert service.strategy_for(assessment_project, "Scoring") == "scoring"
    assert service.strategy_for(assessment_project) == "weighted"
    assert service.strategy_for(Project(project_id="p", tool_type="medical")) == "probability"
    assert service.strategy_for(Project(project_id="p")) == "weighted"


def test_unknown_strategy_is_not_counted(assessment_project):
    with pytest.raises(UnknownStrategyError):
        _service().submit(assessment_project, {}, Subject.anonymous(), strategy="tarot")
    assert calculations_total.value({"strategy": "tarot"}) == 0


def test_failed_subject_is_scored_on_open_fields_only(assessment_project):
    outcome = _service().submit(
        assessment_project,
        {"stage": "revenue", "market": "deep"},
        Subject.failed("u1", "tier lookup timed out"),
    )
    assert outcome.result.score == 70.0
    assert [b.field_id for b in outcome.access.blocked] == ["market"]
    assert outcome.upgrade_prompts[0].current_tier == "free"

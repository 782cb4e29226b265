# prompt_machine/conftest.py
import pytest

from prompt_machine.api.deps import reset_dependencies
from prompt_machine.core.metrics import METRICS
from prompt_machine.models.field import Project


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(scope="function", autouse=True)
def reset_state():
    """
    Reset process-wide singletons and metric values around each test.

    Dependency builders are cached per process; clearing them gives every
    test a fresh cache, project store and tier directory.
    """
    METRICS.reset()
    reset_dependencies()
    yield
    reset_dependencies()


def _assessment_definition(project_id: str = "proj-1") -> dict:
    return {
        "projectId": project_id,
        "name": "Startup Readiness",
        "ownerId": "owner-1",
        "accessLevel": "public",
        "toolType": "assessment",
        "calculationStrategy": "weighted",
        "fields": [
            {
                "fieldId": "stage",
                "label": "Company Stage",
                "fieldType": "select",
                "stepOrder": 1,
                "fieldOrder": 1,
                "weight": 40,
                "required": True,
                "choices": [
                    {"value": "idea", "label": "Idea", "weight": -50},
                    {"value": "revenue", "label": "Revenue", "weight": 50},
                ],
            },
            {
                "fieldId": "team_size",
                "label": "Team Size",
                "fieldType": "number",
                "stepOrder": 1,
                "fieldOrder": 2,
                "weight": 10,
                "minValue": 0,
                "maxValue": 50,
            },
            {
                "fieldId": "market",
                "label": "Market Analysis",
                "description": "Depth of market research",
                "fieldType": "select",
                "stepOrder": 2,
                "fieldOrder": 1,
                "weight": 30,
                "requiredTier": "premium",
                "required": True,
                "choices": [
                    {"value": "deep", "label": "Deep", "weight": 100},
                    {"value": "none", "label": "None", "weight": -100},
                ],
            },
            {
                "fieldId": "benchmarks",
                "label": "Industry Benchmarks",
                "fieldType": "select",
                "stepOrder": 2,
                "fieldOrder": 2,
                "weight": 20,
                "requiredTier": "enterprise",
                "choices": [{"value": "top", "label": "Top Quartile", "weight": 100}],
            },
        ],
    }


@pytest.fixture
def assessment_definition():
    return _assessment_definition()


@pytest.fixture
def assessment_project(assessment_definition):
    return Project.model_validate(assessment_definition)

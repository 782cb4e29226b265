"""
prompt_machine/models/field.py

Tool definition models: projects, fields, choices and calculation rules.

These are authored outside the access core (tool builder, project store) and
are read-only here. Wire names are camelCase for compatibility with existing
clients; Python attributes are snake_case.
"""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


CHOICE_FIELD_TYPES = frozenset({"select", "multiselect"})
NUMERIC_FIELD_TYPES = frozenset({"number", "scale"})


def _coerce_number(value: Any, default: Optional[float]) -> Optional[float]:
    """Parse author-supplied numeric metadata; malformed values fall back to default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _normalize_tier_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


class _DefinitionModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class Choice(_DefinitionModel):
    """A selectable option of a choice-bearing field."""

    value: Any
    label: Optional[str] = None
    weight: float = 0.0
    probability_weight: Optional[float] = None
    explanation: Optional[str] = None

    @field_validator("weight", mode="before")
    @classmethod
    def _weight(cls, value: Any) -> float:
        return _coerce_number(value, 0.0)

    @field_validator("probability_weight", mode="before")
    @classmethod
    def _probability_weight(cls, value: Any) -> Optional[float]:
        return _coerce_number(value, None)

    @property
    def display(self) -> str:
        return self.label if self.label is not None else str(self.value)


class Field(_DefinitionModel):
    """A single configurable input of a multi-step tool, optionally tier-gated."""

    field_id: str
    label: str = ""
    description: Optional[str] = None
    field_type: str = "text"
    step_order: int = 0
    field_order: int = 0
    required_tier: Optional[str] = None
    weight: float = 0.0
    required: bool = False
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    validation_rules: Dict[str, Any] = {}
    choices: List[Choice] = []

    @field_validator("required_tier", mode="before")
    @classmethod
    def _required_tier(cls, value: Any) -> Optional[str]:
        return _normalize_tier_name(value)

    @field_validator("field_type", mode="before")
    @classmethod
    def _field_type(cls, value: Any) -> str:
        return str(value or "text").strip().lower()

    @field_validator("weight", mode="before")
    @classmethod
    def _weight(cls, value: Any) -> float:
        return _coerce_number(value, 0.0)

    @field_validator("min_value", "max_value", mode="before")
    @classmethod
    def _bounds(cls, value: Any) -> Optional[float]:
        return _coerce_number(value, None)

    @field_validator("validation_rules", mode="before")
    @classmethod
    def _rules(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @property
    def is_choice(self) -> bool:
        return self.field_type in CHOICE_FIELD_TYPES

    @property
    def is_numeric(self) -> bool:
        return self.field_type in NUMERIC_FIELD_TYPES

    @property
    def has_correct_answer(self) -> bool:
        return self.correct_answer is not None

    @property
    def correct_answer(self) -> Any:
        rules = self.validation_rules
        if "correctAnswer" in rules:
            return rules["correctAnswer"]
        return rules.get("correct_answer")

    @property
    def sort_key(self) -> tuple:
        return (self.step_order, self.field_order)

    def choice_for(self, value: Any) -> Optional[Choice]:
        for choice in self.choices:
            if choice.value == value:
                return choice
        return None


def order_fields(fields: List[Field]) -> List[Field]:
    """Return fields in author-defined (step_order, field_order) order; stable for ties."""
    return sorted(fields, key=lambda f: f.sort_key)


class ScoreRange(_DefinitionModel):
    key: str
    min: float
    max: float
    label: str
    color: Optional[str] = None


class CalculationRules(_DefinitionModel):
    """Per-project calculation settings.

    base_score falls back to the configured default when unset.
    outcome_mapping drives the decision_tree strategy:
    ``{"root": {"branches": {value: node}, "outcome": {...}}}``.
    """

    base_score: Optional[float] = None
    score_ranges: Optional[List[ScoreRange]] = None
    outcome_mapping: Dict[str, Any] = {}

    @field_validator("base_score", mode="before")
    @classmethod
    def _base_score(cls, value: Any) -> Optional[float]:
        return _coerce_number(value, None)


class Project(_DefinitionModel):
    project_id: str
    name: str = ""
    owner_id: Optional[str] = None
    access_level: str = "private"
    required_tier: Optional[str] = None
    tool_type: Optional[str] = None
    calculation_strategy: Optional[str] = None
    calculation_rules: CalculationRules = CalculationRules()
    fields: List[Field] = []

    @field_validator("required_tier", mode="before")
    @classmethod
    def _required_tier(cls, value: Any) -> Optional[str]:
        return _normalize_tier_name(value)

    @property
    def is_public(self) -> bool:
        return (self.access_level or "").strip().lower() == "public"

    def ordered_fields(self) -> List[Field]:
        return order_fields(list(self.fields))

    def field(self, field_id: str) -> Optional[Field]:
        for item in self.fields:
            if item.field_id == field_id:
                return item
        return None

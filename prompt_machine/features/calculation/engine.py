"""
Calculation engine

Pure, deterministic computation of assessment results from accessible
responses. No external calls, no randomness, no mutation of inputs.

Strategies:
- weighted: base score plus weight-scaled choice/numeric contributions
- probability: base probability compounded multiplicatively per choice
- scoring: correct answers over answered questions, with a letter grade
- decision_tree: walk author-defined branches to an outcome
- none: record responses only

Callers pass the accessible field list only; locked fields never reach
this module, so they cannot leak into factors or details and never count
against confidence.
"""

import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from prompt_machine.core.errors import UnknownStrategyError
from prompt_machine.features.calculation.interpretation import (
    clamp,
    grade_for,
    interpret_score,
    probability_analysis,
    round_half_up,
    scoring_recommendations,
    weighted_recommendations,
)
from prompt_machine.models.calculation import (
    CalculationResult,
    Contribution,
    DecisionTreeResult,
    Factor,
    NoCalculationResult,
    ProbabilityResult,
    QuestionResult,
    ScoringResult,
    WeightedResult,
)
from prompt_machine.models.field import CalculationRules, Field, order_fields


TOOL_TYPE_STRATEGIES = {
    "assessment": "weighted",
    "creative": "none",
    "utility": "none",
    "business": "scoring",
    "educational": "scoring",
    "medical": "probability",
    "financial": "weighted",
}


def default_strategy_for_tool_type(tool_type: Optional[str]) -> str:
    return TOOL_TYPE_STRATEGIES.get((tool_type or "").strip().lower(), "weighted")


def parse_number(value: Any) -> float:
    """Lenient numeric parse: anything malformed counts as 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def normalize_numeric(value: float, field: Field) -> float:
    """Map a raw numeric answer onto 0..100 using the field's bounds."""
    low = field.min_value if field.min_value is not None else 0.0
    high = field.max_value if field.max_value is not None else 100.0
    if high == low:
        return 50.0
    return (value - low) / (high - low) * 100


def selected_values(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return [value]


def confidence_for(responses: Mapping[str, Any], fields: Iterable[Field]) -> int:
    """Completion ratio over required fields the subject can see."""
    required = [f for f in fields if f.required]
    if not required:
        return 100
    answered = sum(1 for f in required if f.field_id in responses)
    return int(math.floor(answered / len(required) * 100 + 0.5))


class CalculationEngine:
    """Strategy dispatch over pure calculation functions."""

    BASE_SCORE = 50.0

    def __init__(self, base_score: float = BASE_SCORE):
        self.base_score = float(base_score)
        self._strategies: Dict[str, Callable[..., CalculationResult]] = {
            "weighted": self._weighted,
            "probability": self._probability,
            "scoring": self._scoring,
            "decision_tree": self._decision_tree,
            "none": self._none,
        }

    def calculate(
        self,
        strategy: str,
        responses: Mapping[str, Any],
        fields: Iterable[Field],
        rules: Optional[CalculationRules] = None,
    ) -> CalculationResult:
        """Compute a result for the given strategy.

        Raises UnknownStrategyError for unregistered strategy names; that is a
        caller bug, not a denial.
        """
        name = (strategy or "").strip().lower()
        handler = self._strategies.get(name)
        if handler is None:
            raise UnknownStrategyError(str(strategy))

        rules = rules or CalculationRules()
        ordered = [f for f in order_fields(list(fields)) if f.field_id]
        answers = dict(responses or {})
        return handler(answers, ordered, rules)

    def _base(self, rules: CalculationRules) -> float:
        return rules.base_score if rules.base_score is not None else self.base_score

    def _weighted(self, responses: Dict[str, Any], fields: List[Field], rules: CalculationRules) -> WeightedResult:
        score = self._base(rules)
        increase: List[Factor] = []
        decrease: List[Factor] = []
        breakdown: List[Contribution] = []

        for field in fields:
            if field.field_id not in responses:
                continue
            value = responses[field.field_id]

            if field.is_choice:
                for selected in selected_values(value):
                    choice = field.choice_for(selected)
                    if choice is None:
                        continue
                    contribution = field.weight * choice.weight / 100
                    score += contribution
                    factor = Factor(
                        field_id=field.field_id,
                        field=field.label,
                        impact=abs(contribution),
                        choice=choice.display,
                        explanation=choice.explanation,
                    )
                    if contribution > 0:
                        increase.append(factor)
                    elif contribution < 0:
                        decrease.append(factor)
                    breakdown.append(Contribution(
                        field_id=field.field_id,
                        field_name=field.label,
                        value=choice.display,
                        weight=field.weight,
                        choice_weight=choice.weight,
                        contribution=contribution,
                    ))

            elif field.is_numeric:
                number = parse_number(value)
                normalized = normalize_numeric(number, field)
                contribution = field.weight * normalized / 100
                score += contribution
                factor = Factor(
                    field_id=field.field_id,
                    field=field.label,
                    impact=abs(contribution),
                    value=number,
                )
                if contribution > 0:
                    increase.append(factor)
                elif contribution < 0:
                    decrease.append(factor)
                breakdown.append(Contribution(
                    field_id=field.field_id,
                    field_name=field.label,
                    value=number,
                    weight=field.weight,
                    normalized_value=normalized,
                    contribution=contribution,
                ))

        final = round_half_up(clamp(score))
        increase.sort(key=lambda f: f.impact, reverse=True)
        decrease.sort(key=lambda f: f.impact, reverse=True)

        return WeightedResult(
            score=final,
            increase=increase,
            decrease=decrease,
            breakdown=breakdown,
            confidence=confidence_for(responses, fields),
            interpretation=interpret_score(final, rules.score_ranges),
            recommendations=weighted_recommendations(final, increase, decrease),
        )

    def _probability(self, responses: Dict[str, Any], fields: List[Field], rules: CalculationRules) -> ProbabilityResult:
        probability = self._base(rules)
        factors: List[Factor] = []

        for field in fields:
            if not field.is_choice or field.field_id not in responses:
                continue
            for selected in selected_values(responses[field.field_id]):
                choice = field.choice_for(selected)
                if choice is None or not choice.probability_weight:
                    continue
                factor = choice.probability_weight / 100
                adjustment = (factor - 0.5) * field.weight / 10
                # Compounds; only the final value is clamped.
                probability *= (1 + adjustment)
                factors.append(Factor(
                    field_id=field.field_id,
                    field=field.label,
                    impact=adjustment,
                    choice=choice.display,
                    explanation=choice.explanation,
                ))

        final = round_half_up(clamp(probability))
        factors.sort(key=lambda f: abs(f.impact), reverse=True)

        return ProbabilityResult(
            probability=final,
            factors=factors,
            confidence=confidence_for(responses, fields),
            analysis=probability_analysis(final, factors),
            interpretation=interpret_score(final, rules.score_ranges),
        )

    def _scoring(self, responses: Dict[str, Any], fields: List[Field], rules: CalculationRules) -> ScoringResult:
        correct = 0
        total = 0
        details: List[QuestionResult] = []

        for field in fields:
            if not field.has_correct_answer or field.field_id not in responses:
                continue
            total += 1
            answer = responses[field.field_id]
            expected = field.correct_answer
            is_correct = answer == expected
            if is_correct:
                correct += 1
            details.append(QuestionResult(
                field_id=field.field_id,
                question=field.label,
                user_answer=answer,
                correct_answer=expected,
                is_correct=is_correct,
                points=(field.weight or 1) if is_correct else 0,
            ))

        percentage = correct / total * 100 if total else 0.0
        score = round_half_up(clamp(percentage))

        return ScoringResult(
            score=score,
            correct_answers=correct,
            total_questions=total,
            details=details,
            grade=grade_for(percentage),
            confidence=confidence_for(responses, fields),
            interpretation=interpret_score(score, rules.score_ranges),
            recommendations=scoring_recommendations(score, details),
        )

    def _decision_tree(self, responses: Dict[str, Any], fields: List[Field], rules: CalculationRules) -> DecisionTreeResult:
        node = rules.outcome_mapping.get("root") if isinstance(rules.outcome_mapping, dict) else None
        node = node if isinstance(node, dict) else {}
        outcome: Optional[Dict[str, Any]] = None
        path: List[Dict[str, Any]] = []

        for field in fields:
            if field.field_id not in responses:
                continue
            value = responses[field.field_id]
            path.append({"fieldId": field.field_id, "field": field.label, "value": value})

            branches = node.get("branches")
            if isinstance(branches, dict) and not isinstance(value, (list, tuple, set, dict)):
                nxt = branches.get(str(value))
                if isinstance(nxt, dict):
                    node = nxt
            if isinstance(node.get("outcome"), dict):
                outcome = node["outcome"]

        outcome = outcome or {}
        raw_score = outcome.get("score")
        score = round_half_up(clamp(parse_number(raw_score))) if raw_score is not None else 50.0
        recommendations = outcome.get("recommendations")

        return DecisionTreeResult(
            score=score,
            outcome=str(outcome.get("label") or "Undetermined"),
            path=path,
            recommendations=[str(r) for r in recommendations] if isinstance(recommendations, list) else [],
            confidence=confidence_for(responses, fields),
            interpretation=interpret_score(score, rules.score_ranges),
        )

    def _none(self, responses: Dict[str, Any], fields: List[Field], rules: CalculationRules) -> NoCalculationResult:
        known = {f.field_id for f in fields}
        return NoCalculationResult(
            responses=sum(1 for field_id in responses if field_id in known),
            total_fields=len(fields),
        )

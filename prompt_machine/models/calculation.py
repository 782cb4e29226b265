"""Calculation result models, one per strategy."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Factor:
    """One field's contribution to a weighted or probability result."""

    field_id: str
    field: str  # field label
    impact: float
    choice: Optional[str] = None
    value: Any = None
    explanation: Optional[str] = None

    @property
    def description(self) -> str:
        if self.explanation:
            return self.explanation
        shown = self.choice if self.choice is not None else self.value
        return f"{self.field}: {shown}"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "fieldId": self.field_id,
            "field": self.field,
            "impact": self.impact,
            "description": self.description,
        }
        if self.choice is not None:
            payload["choice"] = self.choice
        if self.value is not None:
            payload["value"] = self.value
        return payload


@dataclass(frozen=True)
class Contribution:
    field_id: str
    field_name: str
    value: Any
    weight: float
    contribution: float
    choice_weight: Optional[float] = None
    normalized_value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "fieldId": self.field_id,
            "fieldName": self.field_name,
            "value": self.value,
            "weight": self.weight,
            "contribution": self.contribution,
        }
        if self.choice_weight is not None:
            payload["choiceWeight"] = self.choice_weight
        if self.normalized_value is not None:
            payload["normalizedValue"] = self.normalized_value
        return payload


@dataclass(frozen=True)
class QuestionResult:
    field_id: str
    question: str
    user_answer: Any
    correct_answer: Any
    is_correct: bool
    points: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fieldId": self.field_id,
            "question": self.question,
            "userAnswer": self.user_answer,
            "correctAnswer": self.correct_answer,
            "isCorrect": self.is_correct,
            "points": self.points,
        }


@dataclass
class CalculationResult:
    strategy: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy}


@dataclass
class WeightedResult(CalculationResult):
    score: float = 0.0
    increase: List[Factor] = field(default_factory=list)
    decrease: List[Factor] = field(default_factory=list)
    breakdown: List[Contribution] = field(default_factory=list)
    confidence: int = 100
    interpretation: str = ""
    recommendations: List[str] = field(default_factory=list)
    strategy: str = "weighted"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "score": self.score,
            "maxScore": 100,
            "factors": {
                "increase": [f.to_dict() for f in self.increase],
                "decrease": [f.to_dict() for f in self.decrease],
            },
            "breakdown": [c.to_dict() for c in self.breakdown],
            "confidence": self.confidence,
            "interpretation": self.interpretation,
            "recommendations": list(self.recommendations),
        }


@dataclass
class ProbabilityResult(CalculationResult):
    probability: float = 0.0
    factors: List[Factor] = field(default_factory=list)
    confidence: int = 100
    analysis: str = ""
    interpretation: str = ""
    strategy: str = "probability"

    @property
    def score(self) -> float:
        return self.probability

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "score": self.probability,
            "probability": self.probability,
            "factors": [f.to_dict() for f in self.factors],
            "confidence": self.confidence,
            "analysis": self.analysis,
            "interpretation": self.interpretation,
        }


@dataclass
class ScoringResult(CalculationResult):
    score: float = 0.0
    correct_answers: int = 0
    total_questions: int = 0
    details: List[QuestionResult] = field(default_factory=list)
    grade: str = "F"
    confidence: int = 100
    interpretation: str = ""
    recommendations: List[str] = field(default_factory=list)
    strategy: str = "scoring"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "score": self.score,
            "correctAnswers": self.correct_answers,
            "totalQuestions": self.total_questions,
            "details": [d.to_dict() for d in self.details],
            "grade": self.grade,
            "confidence": self.confidence,
            "interpretation": self.interpretation,
            "recommendations": list(self.recommendations),
        }


@dataclass
class DecisionTreeResult(CalculationResult):
    score: float = 50.0
    outcome: str = "Undetermined"
    path: List[Dict[str, Any]] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    confidence: int = 100
    interpretation: str = ""
    strategy: str = "decision_tree"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "score": self.score,
            "outcome": self.outcome,
            "path": [dict(step) for step in self.path],
            "recommendations": list(self.recommendations),
            "confidence": self.confidence,
            "interpretation": self.interpretation,
        }


@dataclass
class NoCalculationResult(CalculationResult):
    responses: int = 0
    total_fields: int = 0
    summary: str = "Responses recorded successfully"
    strategy: str = "none"

    @property
    def score(self) -> None:
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "score": None,
            "summary": self.summary,
            "responses": self.responses,
            "totalFields": self.total_fields,
        }

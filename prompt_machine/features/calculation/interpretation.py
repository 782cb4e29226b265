"""Score interpretation, grading and recommendation copy. Deterministic, no I/O."""

import math
from typing import List, Optional, Sequence

from prompt_machine.models.calculation import Factor, QuestionResult
from prompt_machine.models.field import ScoreRange


DEFAULT_SCORE_RANGES: tuple = (
    ScoreRange(key="veryHigh", min=80, max=100, label="Very High", color="green"),
    ScoreRange(key="high", min=60, max=79, label="High", color="yellow-green"),
    ScoreRange(key="moderate", min=40, max=59, label="Moderate", color="yellow"),
    ScoreRange(key="low", min=20, max=39, label="Low", color="orange"),
    ScoreRange(key="veryLow", min=0, max=19, label="Very Low", color="red"),
)

GRADE_THRESHOLDS = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))


def round_half_up(value: float, places: int = 1) -> float:
    """Round like the browser's Math.round: halves go up, not to even."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def grade_for(percentage: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return "F"


def interpret_score(score: Optional[float], ranges: Optional[Sequence[ScoreRange]] = None) -> str:
    """Label for a score.

    Ranges are matched by their lower bound, highest first, so fractional
    scores that fall between integer bands (79.5) land in the lower band.
    """
    if score is None:
        return "Unknown"
    for band in sorted(ranges or DEFAULT_SCORE_RANGES, key=lambda r: r.min, reverse=True):
        if score >= band.min:
            return band.label
    return "Unknown"


def weighted_recommendations(score: float, increase: List[Factor], decrease: List[Factor]) -> List[str]:
    recommendations: List[str] = []

    if score >= 80:
        recommendations.append("Excellent performance! Continue with current practices.")
        if increase:
            recommendations.append(f"Key strengths: {', '.join(f.field for f in increase[:3])}")
    elif score >= 60:
        recommendations.append("Good results with room for improvement.")
        if decrease:
            recommendations.append(f"Areas to focus on: {', '.join(f.field for f in decrease[:3])}")
    elif score >= 40:
        recommendations.append("Moderate results. Consider making significant improvements.")
        recommendations.append("Focus on addressing the highest impact negative factors.")
    else:
        recommendations.append("Significant improvements needed.")
        recommendations.append("Consider seeking professional guidance or support.")
        if decrease:
            recommendations.append(f"Priority areas: {', '.join(f.field for f in decrease[:5])}")

    if increase and increase[0].impact > 10:
        recommendations.append(f'Leverage your strength in "{increase[0].field}"')
    if decrease and decrease[0].impact > 10:
        recommendations.append(f'Prioritize improving "{decrease[0].field}"')

    return recommendations


def probability_analysis(probability: float, factors: List[Factor]) -> str:
    if probability >= 75:
        analysis = "Very high probability of positive outcome. "
    elif probability >= 50:
        analysis = "Moderate to high probability of positive outcome. "
    elif probability >= 25:
        analysis = "Low to moderate probability of positive outcome. "
    else:
        analysis = "Low probability of positive outcome. "

    if factors:
        analysis += f"Key factors: {', '.join(f.field for f in factors[:3])}."
    return analysis.strip()


def scoring_recommendations(score: float, details: List[QuestionResult]) -> List[str]:
    recommendations: List[str] = []
    missed = [d for d in details if not d.is_correct]

    if score >= 90:
        recommendations.append("Excellent performance! You have mastered the material.")
    elif score >= 70:
        recommendations.append("Good job! Review the questions you missed to improve further.")
    else:
        recommendations.append("Additional study recommended. Focus on the fundamentals.")

    if missed:
        recommendations.append(f"Review these topics: {', '.join(d.question for d in missed[:3])}")
    return recommendations

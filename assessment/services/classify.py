"""Strength / weakness bucketing of competency aggregates."""

from typing import Iterable

from .scoring_config import Thresholds
from .scoring_types import Classification, CompetencyAggregate

NO_STRENGTHS_NOTE = (
    "No competency reached the strength threshold in this assessment. "
    "Development should focus on the areas described below."
)
NO_WEAKNESSES_NOTE = (
    "No significant development areas were identified. "
    "The candidate should continue building on existing strengths."
)


def is_strength(agg: CompetencyAggregate, thresholds: Thresholds) -> bool:
    # closed lower bound: a score exactly at the threshold is a strength
    return agg.average_adjusted >= thresholds.strength


def classify(aggregates: Iterable[CompetencyAggregate], thresholds: Thresholds) -> Classification:
    strengths = []
    weaknesses = []
    for agg in aggregates:
        (strengths if is_strength(agg, thresholds) else weaknesses).append(agg)

    strengths.sort(key=lambda a: (-a.average_adjusted, a.name))
    weaknesses.sort(key=lambda a: (a.average_adjusted, a.name))

    return Classification(
        strengths=tuple(strengths),
        weaknesses=tuple(weaknesses),
        strengths_note=None if strengths else NO_STRENGTHS_NOTE,
        weaknesses_note=None if weaknesses else NO_WEAKNESSES_NOTE,
    )

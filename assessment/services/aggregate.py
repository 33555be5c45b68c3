"""Per-competency aggregation of penalty-adjusted evaluations."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List

from .scoring_config import DEFAULT_BANDS, performance_level
from .scoring_types import AdjustedEvaluation, CompetencyAggregate


def round1(value: float) -> float:
    """Round to one decimal, halves away from zero (5.45 -> 5.5).

    Goes through the shortest float repr, so 1.45 rounds to 1.5 even
    though its binary value is slightly below 1.45.
    """
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def mean(values) -> float:
    values = list(values)
    return sum(values) / len(values)


def aggregate(evaluations: Iterable[AdjustedEvaluation], bands=DEFAULT_BANDS) -> List[CompetencyAggregate]:
    groups: Dict[str, List[AdjustedEvaluation]] = {}
    for ev in evaluations:
        groups.setdefault(ev.competency, []).append(ev)

    out = []
    for name in sorted(groups):
        evs = sorted(groups[name], key=lambda e: (e.question_number, e.scenario_id))
        avg_adjusted = round1(mean(e.adjusted_score for e in evs))
        out.append(CompetencyAggregate(
            name=name,
            evaluations=tuple(evs),
            average_raw=round1(mean(e.raw_score for e in evs)),
            average_adjusted=avg_adjusted,
            performance_level=performance_level(avg_adjusted, bands),
        ))
    return out

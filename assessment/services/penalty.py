"""Follow-up penalty.

A scenario that needed clarifying follow-up questions says less about the
candidate's unprompted judgment, so its scores are reduced by a flat
percentage.
"""

from collections import Counter
from typing import Dict, Iterable

from .scoring_types import AdjustedEvaluation, Evaluation


def adjust(raw_score: float, has_follow_up: bool, penalty_percent: float) -> float:
    if not has_follow_up:
        return raw_score
    return max(0.0, raw_score - raw_score * penalty_percent / 100.0)


def scenario_key(record) -> str:
    """Scenario a record belongs to; records without one stand alone."""
    sid = getattr(record, "scenario_id", None)
    if sid is not None and str(sid).strip():
        return str(sid).strip()
    return f"q{record.question_number}"


def scenario_follow_ups(records: Iterable) -> Dict[str, bool]:
    """Map each scenario to whether it had a follow-up.

    Either signal is enough: an explicit flag on any of the scenario's
    records, or more than one record sharing the scenario.
    """
    records = list(records)
    counts = Counter(scenario_key(r) for r in records)
    out = {key: n > 1 for key, n in counts.items()}
    for r in records:
        if getattr(r, "is_follow_up", False) or getattr(r, "follow_up_generated", False):
            out[scenario_key(r)] = True
    return out


def apply_penalty(evaluation: Evaluation, has_follow_up: bool, penalty_percent: float) -> AdjustedEvaluation:
    applied = penalty_percent if has_follow_up else 0.0
    return AdjustedEvaluation(
        evaluation=evaluation,
        has_follow_up=has_follow_up,
        penalty_percent=applied,
        adjusted_score=adjust(evaluation.raw_score, has_follow_up, penalty_percent),
    )

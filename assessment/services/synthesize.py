"""Report text synthesis.

Everything here is a pure function of its arguments: the same aggregates
and classification always give byte-identical text, which is what lets a
regenerated report be compared against the previous one. Timestamps are
carried on the Report object only, never inside the prose.
"""

import re
from datetime import datetime
from typing import List, Optional, Sequence

from .aggregate import mean, round1
from .scoring_config import DEFAULT_BANDS, performance_level
from .scoring_types import Classification, CompetencyAggregate, Report

MAX_RATIONALE_SENTENCES = 3

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")

CLOSING_STRENGTHS = (
    "The candidate demonstrates solid judgment, with strengths that outweigh the areas for development. "
    "With targeted improvement in the identified areas they show strong potential for success."
)
CLOSING_WEAKNESSES = (
    "The candidate engages with the scenarios but would benefit from focused development in key competency areas "
    "before advancing. A structured development plan is recommended."
)
CLOSING_BALANCED = (
    "The candidate shows balanced performance, with strengths and development opportunities in equal measure. "
    "Continued growth and targeted skill building will support their progress."
)

FALLBACK_STRENGTHS = "Basic analysis completed. No competency scores are available for this submission."
FALLBACK_WEAKNESSES = "Full analysis was not available, so no development areas could be identified."


def trim_sentences(text: Optional[str], max_sentences: int = MAX_RATIONALE_SENTENCES) -> str:
    """Keep at most ``max_sentences`` sentences of ``text``.

    Sentences end at '.', '!' or '?' followed by whitespace. Runs of
    whitespace (including newlines) collapse to single spaces.
    """
    if not text:
        return ""
    flat = " ".join(text.split())
    sentences = [s for s in _SENTENCE_END.split(flat) if s]
    return " ".join(sentences[:max_sentences])


def plural(n: int, word: str, suffix: str = "s") -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}{suffix}"


def _render_competency(agg: CompetencyAggregate, rationale: str) -> str:
    scenarios = len(agg.scenario_ids)
    line = (
        f"{agg.name}: {agg.performance_level} performance with an average score of "
        f"{agg.average_adjusted:.1f}/10 across {plural(scenarios, 'scenario')}"
    )
    if agg.average_raw != agg.average_adjusted:
        line += f" ({agg.average_raw:.1f}/10 before the follow-up penalty)"
    line += "."
    trimmed = trim_sentences(rationale)
    if trimmed:
        line += " " + trimmed
    return line


def render_strengths(classification: Classification) -> str:
    if not classification.strengths:
        return classification.strengths_note or ""
    return "\n\n".join(_render_competency(a, a.strongest.rationale) for a in classification.strengths)


def render_weaknesses(classification: Classification) -> str:
    if not classification.weaknesses:
        return classification.weaknesses_note or ""
    return "\n\n".join(_render_competency(a, a.weakest.rationale) for a in classification.weaknesses)


def closing_sentence(classification: Classification) -> str:
    n_strong = len(classification.strengths)
    n_weak = len(classification.weaknesses)
    if n_strong > n_weak:
        return CLOSING_STRENGTHS
    if n_weak > n_strong:
        return CLOSING_WEAKNESSES
    return CLOSING_BALANCED


def render_summary(aggregates: Sequence[CompetencyAggregate], classification: Classification,
                   evaluation_count: int, answered_count: int, total_count: int,
                   penalty_percent: float, bands=DEFAULT_BANDS) -> str:
    evaluations = [e for agg in aggregates for e in agg.evaluations]
    overall_adjusted = round1(mean(e.adjusted_score for e in evaluations))
    overall_raw = round1(mean(e.raw_score for e in evaluations))
    penalized = {e.scenario_id for e in evaluations if e.penalty_percent > 0}

    parts: List[str] = [
        f"The candidate completed {answered_count} of {plural(total_count, 'scenario')} "
        f"with {plural(evaluation_count, 'competency evaluation')} scored.",
    ]
    overall = (
        f"Overall performance is {performance_level(overall_adjusted, bands)} with an average score of "
        f"{overall_adjusted:.1f}/10"
    )
    if overall_raw != overall_adjusted:
        overall += f" ({overall_raw:.1f}/10 before follow-up penalties)"
    parts.append(overall + ".")
    if penalized:
        parts.append(
            f"A {penalty_percent:g}% follow-up penalty was applied to {plural(len(penalized), 'scenario')}."
        )
    else:
        parts.append("No follow-up penalties were applied.")
    n_strong = len(classification.strengths)
    n_weak = len(classification.weaknesses)
    parts.append(
        f"{n_strong} {'competency' if n_strong == 1 else 'competencies'} met the strength threshold "
        f"and {n_weak} {'was' if n_weak == 1 else 'were'} identified for development."
    )
    parts.append(closing_sentence(classification))
    return " ".join(parts)


def fallback_report(answered_count: int, total_count: int, generated_at: Optional[datetime] = None,
                    is_regeneration: bool = False, regenerated_at: Optional[datetime] = None) -> Report:
    return Report(
        strengths_text=FALLBACK_STRENGTHS,
        weaknesses_text=FALLBACK_WEAKNESSES,
        summary_text=(
            f"The candidate completed {answered_count} of {plural(total_count, 'scenario')}. "
            "No detailed competency analysis is available."
        ),
        competency_table=(),
        generated_at=generated_at,
        is_regeneration=is_regeneration,
        regenerated_at=regenerated_at,
    )


def synthesize(aggregates: Sequence[CompetencyAggregate], classification: Classification,
               evaluation_count: int, answered_count: int, total_count: int,
               penalty_percent: float, generated_at: Optional[datetime] = None,
               is_regeneration: bool = False, regenerated_at: Optional[datetime] = None,
               bands=DEFAULT_BANDS) -> Report:
    if not aggregates:
        return fallback_report(answered_count, total_count, generated_at, is_regeneration, regenerated_at)

    return Report(
        strengths_text=render_strengths(classification),
        weaknesses_text=render_weaknesses(classification),
        summary_text=render_summary(aggregates, classification, evaluation_count,
                                    answered_count, total_count, penalty_percent, bands),
        competency_table=tuple(agg.to_row() for agg in sorted(aggregates, key=lambda a: a.name)),
        generated_at=generated_at,
        is_regeneration=is_regeneration,
        regenerated_at=regenerated_at,
    )

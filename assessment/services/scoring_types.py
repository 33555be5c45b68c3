"""Value objects passed between the scoring stages.

All of them are frozen: a regeneration builds new objects rather than
mutating the previous run's.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Evaluation:
    competency: str
    raw_score: float
    rationale: str
    question_number: int
    scenario_id: str


@dataclass(frozen=True)
class AdjustedEvaluation:
    evaluation: Evaluation
    has_follow_up: bool
    penalty_percent: float
    adjusted_score: float

    # shortcuts so the aggregation code reads like it works on plain evaluations
    @property
    def competency(self) -> str:
        return self.evaluation.competency

    @property
    def raw_score(self) -> float:
        return self.evaluation.raw_score

    @property
    def rationale(self) -> str:
        return self.evaluation.rationale

    @property
    def question_number(self) -> int:
        return self.evaluation.question_number

    @property
    def scenario_id(self) -> str:
        return self.evaluation.scenario_id


@dataclass(frozen=True)
class CompetencyRow:
    """One line of the report's competency table."""
    name: str
    average_raw: float
    average_adjusted: float
    performance_level: str
    evaluation_count: int
    penalized_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "average_raw": self.average_raw,
            "average_adjusted": self.average_adjusted,
            "performance_level": self.performance_level,
            "evaluation_count": self.evaluation_count,
            "penalized_count": self.penalized_count,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CompetencyRow":
        return cls(
            name=d["name"],
            average_raw=float(d["average_raw"]),
            average_adjusted=float(d["average_adjusted"]),
            performance_level=d["performance_level"],
            evaluation_count=int(d.get("evaluation_count", 0)),
            penalized_count=int(d.get("penalized_count", 0)),
        )


@dataclass(frozen=True)
class CompetencyAggregate:
    name: str
    evaluations: Tuple[AdjustedEvaluation, ...]
    average_raw: float
    average_adjusted: float
    performance_level: str

    @property
    def strongest(self) -> AdjustedEvaluation:
        # highest adjusted score, earliest question on ties
        return min(self.evaluations, key=lambda e: (-e.adjusted_score, e.question_number))

    @property
    def weakest(self) -> AdjustedEvaluation:
        return min(self.evaluations, key=lambda e: (e.adjusted_score, e.question_number))

    @property
    def scenario_ids(self) -> Tuple[str, ...]:
        ids = []
        for e in self.evaluations:
            if e.scenario_id not in ids:
                ids.append(e.scenario_id)
        return tuple(ids)

    @property
    def penalized_count(self) -> int:
        return sum(1 for e in self.evaluations if e.penalty_percent > 0)

    def to_row(self) -> CompetencyRow:
        return CompetencyRow(
            name=self.name,
            average_raw=self.average_raw,
            average_adjusted=self.average_adjusted,
            performance_level=self.performance_level,
            evaluation_count=len(self.evaluations),
            penalized_count=self.penalized_count,
        )


@dataclass(frozen=True)
class Classification:
    strengths: Tuple[CompetencyAggregate, ...]
    weaknesses: Tuple[CompetencyAggregate, ...]
    # placeholder sentence for an empty bucket, None otherwise
    strengths_note: Optional[str] = None
    weaknesses_note: Optional[str] = None


@dataclass(frozen=True)
class Report:
    strengths_text: str
    weaknesses_text: str
    summary_text: str
    competency_table: Tuple[CompetencyRow, ...] = field(default_factory=tuple)
    generated_at: Optional[datetime] = None
    is_regeneration: bool = False
    regenerated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strengths": self.strengths_text,
            "weaknesses": self.weaknesses_text,
            "summary": self.summary_text,
            "competency_table": [row.to_dict() for row in self.competency_table],
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "is_regeneration": self.is_regeneration,
            "regenerated_at": self.regenerated_at.isoformat() if self.regenerated_at else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Report":
        def _dt(v):
            return datetime.fromisoformat(v) if v else None

        return cls(
            strengths_text=d.get("strengths", ""),
            weaknesses_text=d.get("weaknesses", ""),
            summary_text=d.get("summary", ""),
            competency_table=tuple(CompetencyRow.from_dict(r) for r in d.get("competency_table") or []),
            generated_at=_dt(d.get("generated_at")),
            is_regeneration=bool(d.get("is_regeneration", False)),
            regenerated_at=_dt(d.get("regenerated_at")),
        )

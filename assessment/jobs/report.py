"""Report generation for a submission.

Drives the whole scoring pipeline for one submission: build evaluation
units from the stored questions, fan the evaluator calls out over a thread
pool, then penalty -> aggregate -> classify -> synthesize, and persist the
result in one commit.
"""

from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import GenerationTimeout, InvalidRequest, PersistenceError, SubmissionNotFound
from ..extensions import db
from ..models.submission import STATUS_ANALYZED, STATUS_ANALYZING, Submission
from ..services.aggregate import aggregate
from ..services.classify import classify
from ..services.competencies import DEFAULT_COMPETENCY, get_competency_definition, parse_competencies, suggest_competencies
from ..services.openai_wrap import gen_competency_evaluation
from ..services.penalty import apply_penalty, scenario_follow_ups, scenario_key
from ..services.scoring_config import ScoringConfig
from ..services.scoring_types import Evaluation, Report
from ..services.synthesize import synthesize

TEST_TYPES = {"JDT": "interview", "SJT": "sjt"}


@dataclass(frozen=True)
class EvaluationUnit:
    """One scenario as sent to the evaluator: the main question plus its follow-up answers."""
    scenario_id: str
    question_number: int
    question: str
    candidate_answer: Optional[str]
    situation: Optional[str]
    best_rationale: Optional[str]
    worst_rationale: Optional[str]
    competencies: Tuple[str, ...]
    has_follow_up: bool
    follow_up_count: int = 0

    @property
    def answered(self) -> bool:
        return bool(self.candidate_answer)


@dataclass(frozen=True)
class GenerationResult:
    report: Report
    cached: bool = False
    regenerated: bool = False
    # no evaluation succeeded; report is the fallback or the previous one
    degraded: bool = False


def _clean(text):
    text = (text or "").strip()
    return text or None


def build_units(records, test_type: str, submission_id=None) -> List[EvaluationUnit]:
    """Group question records into scenarios, in question-number order.

    The main question of a scenario is its first answered record not flagged
    as a follow-up; answers to the scenario's other records are appended to
    the main answer, and their competencies join the main record's. A
    scenario whose only answers are follow-ups is not scored.
    """
    records = sorted(records, key=lambda r: r.question_number)
    numbers = [r.question_number for r in records]
    if len(set(numbers)) != len(numbers):
        raise ValueError(f"duplicate question numbers in submission: {numbers}")

    default = DEFAULT_COMPETENCY[test_type]
    follow_ups = scenario_follow_ups(records)
    groups = OrderedDict()
    for r in records:
        groups.setdefault(scenario_key(r), []).append(r)

    units = []
    for key, recs in groups.items():
        answered = [r for r in recs if _clean(r.candidate_answer)]
        main = next((r for r in answered if not r.is_follow_up), None)
        if main is None:
            main = next((r for r in recs if not r.is_follow_up), recs[0])
            for r in answered:
                current_app.logger.warning(
                    'Submission %s: skipping question %s (%s), scenario %s has no answered main question',
                    submission_id, r.question_number, r.competency or default, key)
            answered = []
        extra = [r for r in answered if r is not main]
        answer = _clean(main.candidate_answer) if answered else None
        if answer and extra:
            answer += "\n\nFollow-up responses:\n" + "\n".join(
                f"{i}. {_clean(r.candidate_answer)}" for i, r in enumerate(extra, 1))
        scored = [main] + extra
        units.append(EvaluationUnit(
            scenario_id=key,
            question_number=main.question_number,
            question=main.question,
            candidate_answer=answer,
            situation=_clean(main.situation) or next((_clean(r.situation) for r in recs if _clean(r.situation)), None),
            best_rationale=_clean(main.best_rationale),
            worst_rationale=_clean(main.worst_rationale),
            competencies=parse_competencies(",".join(r.competency or "" for r in scored), default),
            has_follow_up=follow_ups[key],
            follow_up_count=len(extra),
        ))
    return units


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _commit(submission_id):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception('Persisting submission %s failed', submission_id)
        raise PersistenceError(f"could not update submission {submission_id}: {e}") from e


def _log_unknown_competencies(submission_id, units):
    seen = set()
    for u in units:
        for name in u.competencies:
            if name in seen or get_competency_definition(name):
                continue
            seen.add(name)
            current_app.logger.info('Submission %s: competency %r has no standard definition (closest: %s)',
                                    submission_id, name, ', '.join(suggest_competencies(name)) or 'none')


def evaluate_units(submission_id, units: List[EvaluationUnit], evaluator: Callable,
                   config: ScoringConfig) -> List[Evaluation]:
    """Call the evaluator once per answered unit x competency, concurrently.

    Failed calls are logged and dropped. Raises GenerationTimeout when the
    whole batch does not finish within ``config.timeout_sec``; calls still
    pending at that point are abandoned.
    """
    app = current_app._get_current_object()

    def _call(unit, competency):
        # worker threads need their own app context for current_app.config
        with app.app_context():
            return evaluator(
                situation=unit.situation,
                question=unit.question,
                best_rationale=unit.best_rationale,
                worst_rationale=unit.worst_rationale,
                competency=competency,
                candidate_answer=unit.candidate_answer,
            )

    jobs = [(u, c) for u in units if u.answered for c in u.competencies]
    if not jobs:
        return []

    executor = ThreadPoolExecutor(max_workers=min(config.max_workers, len(jobs)))
    futures = [(executor.submit(_call, u, c), u, c) for u, c in jobs]
    done, pending = wait([f for f, _, _ in futures], timeout=config.timeout_sec)
    if pending:
        executor.shutdown(wait=False, cancel_futures=True)
        raise GenerationTimeout(
            f"{len(pending)} of {len(futures)} evaluations for submission {submission_id} "
            f"did not finish within {config.timeout_sec:g}s"
        )
    executor.shutdown(wait=True)

    # futures are in job order, so the result order never depends on completion order
    evaluations = []
    for f, unit, competency in futures:
        try:
            res = f.result()
            score = float(res['score'])
            if not 0 <= score <= 10:
                raise ValueError(f"score {score} outside 0-10")
            rationale = str(res.get('rationale') or '')
        except Exception as e:
            current_app.logger.warning('Submission %s: skipping question %s (%s), evaluation failed: %s',
                                       submission_id, unit.question_number, competency, e)
            continue
        evaluations.append(Evaluation(
            competency=competency,
            raw_score=score,
            rationale=rationale,
            question_number=unit.question_number,
            scenario_id=unit.scenario_id,
        ))
    return evaluations


def build_report(units: List[EvaluationUnit], evaluations: List[Evaluation], config: ScoringConfig,
                 generated_at=None, is_regeneration=False, regenerated_at=None) -> Report:
    """penalty -> aggregate -> classify -> synthesize over already-collected evaluations."""
    follow_up = {u.scenario_id: u.has_follow_up for u in units}
    adjusted = [apply_penalty(ev, follow_up.get(ev.scenario_id, False), config.follow_up_penalty_percent)
                for ev in evaluations]
    aggregates = aggregate(adjusted, config.thresholds.bands)
    classification = classify(aggregates, config.thresholds)
    return synthesize(
        aggregates,
        classification,
        evaluation_count=len(evaluations),
        answered_count=sum(1 for u in units if u.answered),
        total_count=len(units),
        penalty_percent=config.follow_up_penalty_percent,
        generated_at=generated_at,
        is_regeneration=is_regeneration,
        regenerated_at=regenerated_at,
        bands=config.thresholds.bands,
    )


def resolve_test_type(submission: Submission, test_type: Optional[str]) -> str:
    if test_type is None:
        return TEST_TYPES.get((submission.test_type or "").upper(), "sjt")
    if test_type not in DEFAULT_COMPETENCY:
        raise InvalidRequest(f"unknown assessment type {test_type!r}")
    return test_type


def generate_report(submission_id: str, force_regenerate: bool = False, test_type: Optional[str] = None,
                    evaluator: Optional[Callable] = None, config: Optional[ScoringConfig] = None) -> GenerationResult:
    """Produce (or return the cached) report for a submission.

    Must run inside an application context.
    """
    submission = db.session.get(Submission, submission_id)
    if submission is None:
        raise SubmissionNotFound(submission_id)

    if submission.report and not force_regenerate:
        current_app.logger.info('Submission %s already analyzed, returning cached report', submission_id)
        return GenerationResult(report=Report.from_dict(submission.report), cached=True)

    test_type = resolve_test_type(submission, test_type)
    evaluator = evaluator or gen_competency_evaluation
    config = config or ScoringConfig.from_mapping(current_app.config)

    previous_status = submission.analysis_status
    submission.analysis_status = STATUS_ANALYZING
    _commit(submission_id)

    try:
        return _run_generate(submission, test_type, force_regenerate, evaluator, config)
    except Exception:
        # no report was written; put the status back
        db.session.rollback()
        submission.analysis_status = previous_status
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Could not restore status of submission %s', submission_id)
        raise


def _run_generate(submission: Submission, test_type: str, force_regenerate: bool,
                  evaluator: Callable, config: ScoringConfig) -> GenerationResult:
    submission_id = submission.id
    units = build_units(submission.questions, test_type, submission_id)
    _log_unknown_competencies(submission_id, units)
    current_app.logger.info('Submission %s: evaluating %s of %s scenarios (%s)%s', submission_id,
                            sum(1 for u in units if u.answered), len(units), test_type,
                            ' [force regenerate]' if force_regenerate else '')
    evaluations = evaluate_units(submission_id, units, evaluator, config)

    if not evaluations and submission.report:
        current_app.logger.warning('Submission %s: no evaluation succeeded, keeping the previous report', submission_id)
        submission.analysis_status = STATUS_ANALYZED
        _commit(submission_id)
        return GenerationResult(report=Report.from_dict(submission.report), degraded=True)

    if not evaluations:
        current_app.logger.warning('Submission %s: no evaluation succeeded, storing fallback report', submission_id)

    now = _utcnow()
    report = build_report(units, evaluations, config, generated_at=now, is_regeneration=force_regenerate,
                          regenerated_at=now if force_regenerate else None)

    naive_now = now.replace(tzinfo=None)
    submission.report = report.to_dict()
    submission.analysis_completed = True
    submission.analysis_completed_at = naive_now
    if force_regenerate:
        submission.regenerated_at = naive_now
    submission.analysis_status = STATUS_ANALYZED
    _commit(submission_id)

    current_app.logger.info('Submission %s updated with report (%s evaluations, %s competencies)%s',
                            submission_id, len(evaluations), len(report.competency_table),
                            ' (regenerated)' if force_regenerate else '')
    return GenerationResult(report=report, regenerated=force_regenerate, degraded=not evaluations)

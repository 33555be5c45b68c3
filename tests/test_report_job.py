import logging
import threading

import pytest
from sqlalchemy.exc import SQLAlchemyError

from assessment.errors import GenerationTimeout, InvalidRequest, PersistenceError, SubmissionNotFound
from assessment.extensions import db
from assessment.jobs.report import build_units, generate_report
from assessment.models import QuestionRecord, Submission
from assessment.services.classify import NO_WEAKNESSES_NOTE
from assessment.services.scoring_config import ScoringConfig

from helpers import FakeEvaluator, three_scenarios_with_follow_ups


def test_follow_up_penalty_end_to_end(app, make_submission):
    sid = make_submission(three_scenarios_with_follow_ups())
    evaluator = FakeEvaluator({'Q1': 8, 'Q3': 6, 'Q5': 4})

    result = generate_report(sid, evaluator=evaluator)

    assert not result.cached and not result.regenerated and not result.degraded
    assert sorted(evaluator.calls) == [('Q1', 'Decision Making'), ('Q3', 'Decision Making'), ('Q5', 'Decision Making')]

    row, = result.report.competency_table
    assert row.name == 'Decision Making'
    assert row.average_raw == 6.0
    assert row.average_adjusted == 5.4
    assert row.performance_level == 'Good'
    assert row.penalized_count == 3

    assert result.report.strengths_text.startswith('Decision Making: Good performance')
    assert result.report.weaknesses_text == NO_WEAKNESSES_NOTE
    assert '3 of 3 scenarios' in result.report.summary_text
    assert 'A 10% follow-up penalty was applied to 3 scenarios.' in result.report.summary_text

    sub = db.session.get(Submission, sid)
    assert sub.analysis_status == 'analyzed'
    assert sub.analysis_completed is True
    assert sub.analysis_completed_at is not None
    assert sub.regenerated_at is None
    assert sub.report['competency_table'][0]['average_adjusted'] == 5.4


def test_follow_up_answers_are_sent_with_main_answer(app, make_submission):
    sid = make_submission(three_scenarios_with_follow_ups())
    sub = db.session.get(Submission, sid)
    units = build_units(sub.questions, 'sjt')
    assert [u.scenario_id for u in units] == ['s1', 's2', 's3']
    assert [u.question_number for u in units] == [1, 3, 5]
    assert units[0].has_follow_up and units[0].follow_up_count == 1
    assert units[0].candidate_answer == 'main answer 1\n\nFollow-up responses:\n1. follow-up answer 1'


def test_blank_first_record_does_not_hide_answered_one(app, make_submission):
    sid = make_submission([
        {'candidate_answer': None, 'competency': 'Teamwork', 'scenario_id': 's1'},
        {'candidate_answer': 'I would talk to the team.', 'competency': 'Teamwork', 'scenario_id': 's1'},
    ])
    evaluator = FakeEvaluator({'Q2': 6})
    result = generate_report(sid, evaluator=evaluator)

    assert evaluator.calls == [('Q2', 'Teamwork')]
    assert not result.degraded
    row, = result.report.competency_table
    assert row.name == 'Teamwork'
    assert row.evaluation_count == 1


def test_answered_follow_up_without_main_answer_is_logged(app, make_submission, caplog):
    sid = make_submission([
        {'candidate_answer': '', 'competency': 'Empathy', 'scenario_id': 's1'},
        {'candidate_answer': 'I would listen first.', 'competency': 'Empathy', 'scenario_id': 's1',
         'is_follow_up': True},
    ])
    evaluator = FakeEvaluator({})
    with caplog.at_level(logging.WARNING):
        result = generate_report(sid, evaluator=evaluator)

    assert evaluator.calls == []
    assert result.degraded
    assert 'skipping question 2 (Empathy)' in caplog.text


def test_follow_up_competencies_are_scored(app, make_submission):
    sid = make_submission([
        {'candidate_answer': 'main', 'competency': 'Teamwork', 'scenario_id': 's1'},
        {'candidate_answer': 'follow-up', 'competency': 'Empathy, Teamwork', 'scenario_id': 's1',
         'is_follow_up': True},
        {'candidate_answer': None, 'competency': 'Integrity', 'scenario_id': 's1', 'is_follow_up': True},
    ])
    evaluator = FakeEvaluator({'Q1': 7})
    result = generate_report(sid, evaluator=evaluator)

    assert sorted(evaluator.calls) == [('Q1', 'Empathy'), ('Q1', 'Teamwork')]
    assert [r.name for r in result.report.competency_table] == ['Empathy', 'Teamwork']


def test_build_units_rejects_duplicate_question_numbers():
    records = [QuestionRecord(question_number=1, question='a'), QuestionRecord(question_number=1, question='b')]
    with pytest.raises(ValueError):
        build_units(records, 'sjt')


def test_default_competency_per_type(app, make_submission):
    sid = make_submission([{'candidate_answer': 'I would ask for help.'}], test_type='JDT')
    evaluator = FakeEvaluator({'Q1': 7})
    generate_report(sid, evaluator=evaluator)
    assert evaluator.calls == [('Q1', 'General Suitability')]

    sid = make_submission([{'candidate_answer': 'I would escalate.'}])
    evaluator = FakeEvaluator({'Q1': 7})
    generate_report(sid, test_type='sjt', evaluator=evaluator)
    assert evaluator.calls == [('Q1', 'General Decision Making')]


def test_multiple_competencies_per_question(app, make_submission):
    sid = make_submission([
        {'candidate_answer': 'a', 'competency': 'Teamwork, Leadership'},
        {'candidate_answer': 'b', 'competency': 'Leadership'},
    ])
    evaluator = FakeEvaluator({'Q1': 8, 'Q2': 2})
    result = generate_report(sid, evaluator=evaluator)
    assert len(evaluator.calls) == 3
    assert [(r.name, r.average_adjusted, r.evaluation_count) for r in result.report.competency_table] == [
        ('Leadership', 5.0, 2),
        ('Teamwork', 8.0, 1),
    ]


def test_cached_report_is_returned_without_evaluating(app, make_submission):
    sid = make_submission(three_scenarios_with_follow_ups())
    evaluator = FakeEvaluator({'Q1': 8, 'Q3': 6, 'Q5': 4})
    first = generate_report(sid, evaluator=evaluator)

    again = FakeEvaluator({'Q1': 1, 'Q3': 1, 'Q5': 1})
    second = generate_report(sid, evaluator=again)

    assert second.cached
    assert again.calls == []
    assert second.report.to_dict() == first.report.to_dict()


def test_force_regenerate(app, make_submission):
    sid = make_submission(three_scenarios_with_follow_ups())
    generate_report(sid, evaluator=FakeEvaluator({'Q1': 8, 'Q3': 6, 'Q5': 4}))

    result = generate_report(sid, force_regenerate=True, evaluator=FakeEvaluator({'Q1': 9, 'Q3': 9, 'Q5': 9}))

    assert result.regenerated and not result.cached
    assert result.report.is_regeneration
    assert result.report.regenerated_at is not None
    sub = db.session.get(Submission, sid)
    assert sub.regenerated_at is not None
    assert sub.report['is_regeneration'] is True
    assert sub.report['competency_table'][0]['average_raw'] == 9.0


def test_regeneration_with_same_scores_gives_same_text(app, make_submission):
    sid = make_submission(three_scenarios_with_follow_ups())
    scores = {'Q1': 8, 'Q3': 6, 'Q5': 4}
    first = generate_report(sid, evaluator=FakeEvaluator(scores))
    second = generate_report(sid, force_regenerate=True, evaluator=FakeEvaluator(scores))
    assert first.report.strengths_text == second.report.strengths_text
    assert first.report.weaknesses_text == second.report.weaknesses_text
    assert first.report.summary_text == second.report.summary_text


def test_failed_evaluation_is_skipped(app, make_submission, caplog):
    sid = make_submission(three_scenarios_with_follow_ups())
    evaluator = FakeEvaluator({'Q1': 8, 'Q3': 6, 'Q5': 4}, fail={'Q3'})

    with caplog.at_level(logging.WARNING):
        result = generate_report(sid, evaluator=evaluator)

    assert 'skipping question 3' in caplog.text
    row, = result.report.competency_table
    assert row.evaluation_count == 2
    assert row.average_raw == 6.0
    assert not result.degraded


def test_out_of_range_score_is_skipped(app, make_submission):
    sid = make_submission([{'candidate_answer': 'a'}, {'candidate_answer': 'b'}])
    result = generate_report(sid, evaluator=FakeEvaluator({'Q1': 14, 'Q2': 6}))
    row, = result.report.competency_table
    assert row.evaluation_count == 1
    assert row.average_raw == 6.0


def test_unanswered_submission_gets_fallback_report(app, make_submission):
    sid = make_submission([{'candidate_answer': ''}, {'candidate_answer': None}])
    evaluator = FakeEvaluator({})
    result = generate_report(sid, evaluator=evaluator)

    assert evaluator.calls == []
    assert result.degraded
    assert result.report.competency_table == ()
    assert 'completed 0 of 2 scenarios' in result.report.summary_text
    assert db.session.get(Submission, sid).analysis_status == 'analyzed'


def test_all_failures_keep_previous_report(app, make_submission):
    sid = make_submission(three_scenarios_with_follow_ups())
    first = generate_report(sid, evaluator=FakeEvaluator({'Q1': 8, 'Q3': 6, 'Q5': 4}))

    result = generate_report(sid, force_regenerate=True,
                             evaluator=FakeEvaluator({}, fail={'Q1', 'Q3', 'Q5'}))

    assert result.degraded
    assert result.report.to_dict() == first.report.to_dict()
    sub = db.session.get(Submission, sid)
    assert sub.report == first.report.to_dict()
    assert sub.analysis_status == 'analyzed'


def test_missing_submission_raises(app):
    with pytest.raises(SubmissionNotFound):
        generate_report('does-not-exist', evaluator=FakeEvaluator({}))


def test_unknown_type_raises(app, make_submission):
    sid = make_submission([{'candidate_answer': 'a'}])
    with pytest.raises(InvalidRequest):
        generate_report(sid, test_type='essay', evaluator=FakeEvaluator({'Q1': 5}))


def test_timeout_restores_status(app, make_submission):
    sid = make_submission([{'candidate_answer': 'a'}])
    release = threading.Event()

    def slow_evaluator(**kwargs):
        release.wait(5)
        return {'score': 5, 'rationale': 'late'}

    try:
        with pytest.raises(GenerationTimeout):
            generate_report(sid, evaluator=slow_evaluator, config=ScoringConfig(timeout_sec=0.2))
    finally:
        release.set()

    sub = db.session.get(Submission, sid)
    assert sub.report is None
    assert sub.analysis_status == 'not_analyzed'


def test_persistence_failure_leaves_no_partial_report(app, make_submission, monkeypatch):
    sid = make_submission([{'candidate_answer': 'a'}])
    real_commit = db.session.commit
    calls = []

    def flaky_commit():
        calls.append(1)
        if len(calls) == 2:
            raise SQLAlchemyError('disk full')
        return real_commit()

    monkeypatch.setattr(db.session, 'commit', flaky_commit)

    with pytest.raises(PersistenceError):
        generate_report(sid, evaluator=FakeEvaluator({'Q1': 7}))

    sub = db.session.get(Submission, sid)
    assert sub.report is None
    assert sub.analysis_completed is False
    assert sub.analysis_status == 'not_analyzed'

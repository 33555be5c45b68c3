from assessment.services.penalty import apply_penalty
from assessment.services.scoring_types import Evaluation


def adjusted(competency, raw, question_number, follow_up=False, penalty=10, rationale=None, scenario_id=None):
    ev = Evaluation(
        competency=competency,
        raw_score=raw,
        rationale=rationale if rationale is not None else f'{competency} rationale for question {question_number}.',
        question_number=question_number,
        scenario_id=scenario_id or f'q{question_number}',
    )
    return apply_penalty(ev, follow_up, penalty)


def three_scenarios_with_follow_ups(competency='Decision Making'):
    """Three scenarios, each a main question (Q1, Q3, Q5) plus one follow-up."""
    records = []
    for s in range(3):
        records.append({
            'question': f'Q{2 * s + 1}',
            'candidate_answer': f'main answer {s + 1}',
            'situation': f'Situation {s + 1}',
            'competency': competency,
            'scenario_id': f's{s + 1}',
        })
        records.append({
            'question': f'Q{2 * s + 2}',
            'candidate_answer': f'follow-up answer {s + 1}',
            'competency': competency,
            'scenario_id': f's{s + 1}',
            'is_follow_up': True,
        })
    return records


class FakeEvaluator:
    """Scores by question text; raises for questions listed in ``fail``."""

    def __init__(self, scores, fail=(), rationale='The candidate weighed the options. They chose a clear course of action.'):
        self.scores = scores
        self.fail = set(fail)
        self.rationale = rationale
        self.calls = []

    def __call__(self, situation, question, best_rationale, worst_rationale, competency, candidate_answer):
        self.calls.append((question, competency))
        if question in self.fail:
            raise RuntimeError(f'evaluator down for {question}')
        return {'score': self.scores[question], 'rationale': f'{self.rationale} ({question})'}

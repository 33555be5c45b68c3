import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from assessment import create_app
from assessment.extensions import db
from assessment.models import QuestionRecord, Submission


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'OPENAI_API_KEY': None,
        'EVALUATOR_MAX_WORKERS': 2,
        'EVALUATION_TIMEOUT_SEC': 10,
        'FOLLOW_UP_PENALTY_PERCENT': 10,
        'STRENGTH_THRESHOLD': 5.0,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_submission(app):
    """Persist a submission with question records given as dicts."""
    def _make(records, test_type='SJT', candidate_name='Test Candidate'):
        sub = Submission(candidate_name=candidate_name, test_type=test_type)
        for i, r in enumerate(records, 1):
            fields = {'question_number': i, 'question': f'Q{i}'}
            fields.update(r)
            sub.questions.append(QuestionRecord(**fields))
        db.session.add(sub)
        db.session.commit()
        return sub.id
    return _make

from ..extensions import db
from .base import TimestampMixin


class QuestionRecord(db.Model, TimestampMixin):
    __tablename__ = "question_records"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.String(64), db.ForeignKey("submissions.id"), nullable=False, index=True)
    question_number = db.Column(db.Integer, nullable=False)  # 1-based
    question = db.Column(db.Text, nullable=False)
    candidate_answer = db.Column(db.Text)  # NULL = unanswered

    # SJT grading context; interviews store the preferred answer as best_rationale
    situation = db.Column(db.Text)
    best_rationale = db.Column(db.Text)
    worst_rationale = db.Column(db.Text)
    competency = db.Column(db.String(500))  # comma-separated, see parse_competencies()

    # follow-up tracking
    is_follow_up = db.Column(db.Boolean, nullable=False, default=False)
    follow_up_generated = db.Column(db.Boolean, nullable=False, default=False)
    scenario_id = db.Column(db.String(64))

    __table_args__ = (
        db.UniqueConstraint("submission_id", "question_number", name="uq_question_records_submission_number"),
    )

    def __repr__(self) -> str:
        return f"<QuestionRecord submission={self.submission_id} n={self.question_number}>"

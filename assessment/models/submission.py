from uuid import uuid4
from ..extensions import db
from .base import TimestampMixin

# analysis status: not_analyzed -> analyzing -> analyzed (regenerate re-enters analyzing)
STATUS_NOT_ANALYZED = "not_analyzed"
STATUS_ANALYZING = "analyzing"
STATUS_ANALYZED = "analyzed"


class Submission(db.Model, TimestampMixin):
    __tablename__ = "submissions"

    id = db.Column(db.String(64), primary_key=True, default=lambda: uuid4().hex)
    candidate_name = db.Column(db.String(120))
    test_type = db.Column(db.String(10), nullable=False, default="SJT")  # JDT/SJT
    analysis_status = db.Column(db.String(20), nullable=False, default=STATUS_NOT_ANALYZED, index=True)

    # synthesized report (Report.to_dict()); overwritten on regeneration
    report = db.Column(db.JSON)
    analysis_completed = db.Column(db.Boolean, nullable=False, default=False)
    analysis_completed_at = db.Column(db.DateTime)
    regenerated_at = db.Column(db.DateTime)

    questions = db.relationship(
        "QuestionRecord",
        backref="submission",
        order_by="QuestionRecord.question_number",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Submission id={self.id} type={self.test_type} status={self.analysis_status}>"

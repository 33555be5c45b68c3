"""Exceptions raised by the report pipeline.

The HTTP layer maps them onto status codes: InvalidRequest -> 400,
SubmissionNotFound -> 404, everything else -> 500. EvaluatorError never
reaches the caller; the controller skips the failed question instead.
"""


class AssessmentError(Exception):
    """Base class for report pipeline errors."""


class InvalidRequest(AssessmentError):
    pass


class SubmissionNotFound(AssessmentError):
    def __init__(self, submission_id):
        super().__init__(f"Submission {submission_id} not found")
        self.submission_id = submission_id


class EvaluatorError(AssessmentError):
    """A single external evaluation call failed."""


class PersistenceError(AssessmentError):
    pass


class GenerationTimeout(AssessmentError):
    pass

# assessment/api/analyze.py
from flask import Blueprint, jsonify, request, current_app

from assessment.errors import AssessmentError, InvalidRequest, SubmissionNotFound
from assessment.extensions import db
from assessment.jobs.report import generate_report
from assessment.models import Submission

bp = Blueprint("analyze", __name__)

VALID_TYPES = ("interview", "sjt")


def _error(message, status, details=None):
    return jsonify({"error": message, "details": details}), status


def _parse_request(payload):
    if not isinstance(payload, dict):
        raise InvalidRequest("request body must be a JSON object")
    submission_id = payload.get("submissionId")
    if not isinstance(submission_id, str) or not submission_id.strip():
        raise InvalidRequest("Missing submissionId")
    test_type = payload.get("type")
    if not test_type:
        raise InvalidRequest('Missing type ("interview" or "sjt")')
    if test_type not in VALID_TYPES:
        raise InvalidRequest(f'Unknown type {test_type!r}, expected "interview" or "sjt"')
    force = payload.get("forceRegenerate", False)
    if not isinstance(force, bool):
        raise InvalidRequest("forceRegenerate must be a boolean")
    return submission_id.strip(), test_type, force


@bp.route("/api/background-analysis", methods=["POST"])
def background_analysis():
    try:
        submission_id, test_type, force = _parse_request(request.get_json(silent=True))
    except InvalidRequest as e:
        return _error("Invalid request", 400, str(e))

    current_app.logger.info("Report generation requested for submission %s (%s)%s",
                            submission_id, test_type, " [force regenerate]" if force else "")
    try:
        result = generate_report(submission_id, force_regenerate=force, test_type=test_type)
    except SubmissionNotFound as e:
        return _error("Submission not found", 404, str(e))
    except InvalidRequest as e:
        return _error("Invalid request", 400, str(e))
    except AssessmentError as e:
        current_app.logger.error("Report generation failed for submission %s: %s", submission_id, e)
        return _error("Failed to generate background report", 500, str(e))
    except Exception as e:
        current_app.logger.exception("Report generation failed for submission %s", submission_id)
        return _error("Failed to generate background report", 500, str(e) or "Unknown error")

    if result.cached:
        message = "Submission already analyzed"
    elif result.regenerated:
        message = "Background analysis regenerated successfully"
    else:
        message = "Background analysis completed"
    return jsonify({
        "success": True,
        "message": message,
        "submissionId": submission_id,
        "type": test_type,
        "regenerated": result.regenerated,
        "cached": result.cached,
    })


@bp.get("/api/submissions/<submission_id>/report")
def get_report(submission_id):
    submission = db.session.get(Submission, submission_id)
    if submission is None:
        return _error("Submission not found", 404, f"Submission {submission_id} not found")
    if not submission.report:
        return _error("Report not available", 404, f"Submission {submission_id} has not been analyzed")
    return jsonify({
        "submissionId": submission.id,
        "status": submission.analysis_status,
        "report": submission.report,
    })

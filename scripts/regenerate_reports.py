"""Force-regenerate the report of one or more submissions.

Usage:
  python scripts/regenerate_reports.py <submission_id> [<submission_id> ...]

Runs synchronously inside the app context, the same way the HTTP endpoint
does with forceRegenerate=true.
"""

import os
import sys

# ensure project root is on sys.path so `import assessment` works when running this script
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from assessment import create_app
from assessment.errors import AssessmentError
from assessment.jobs.report import generate_report


def main(argv):
    if not argv:
        print(__doc__)
        return 2
    app = create_app()
    failures = 0
    with app.app_context():
        for submission_id in argv:
            try:
                result = generate_report(submission_id, force_regenerate=True)
            except AssessmentError as e:
                failures += 1
                print(f"{submission_id}: FAILED ({e})")
                continue
            rows = len(result.report.competency_table)
            note = " (degraded)" if result.degraded else ""
            print(f"{submission_id}: regenerated, {rows} competencies{note}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

"""OpenAI evaluation of a single answer against one competency.

We call the OpenAI Responses HTTP API directly with `requests` rather than
through the `openai` SDK. Unlike the transcript summaries elsewhere, a
failed evaluation is never replaced by a dummy score: it raises
EvaluatorError and the report controller skips that question.
"""

import json
import random
import re
import time
from typing import Any, Dict, Optional

import requests
from flask import current_app

from ..errors import EvaluatorError
from .competencies import get_competency_definition

RESPONSES_URL = 'https://api.openai.com/v1/responses'


def _build_prompt(situation, question, best_rationale, worst_rationale, competency, candidate_answer) -> str:
    lines = [
        "You are an expert talent assessor. Evaluate ONLY the competency named below.",
        "Return a JSON object and nothing else, with keys:",
        '- "score": a number from 0 to 10 for how well the answer demonstrates the competency',
        '- "rationale": two or three sentences explaining the score with reference to the criteria',
        "Give credit for partial understanding; reserve scores below 5 for answers that are clearly",
        "inadequate or match the worst-response criteria.",
        "--",
        f"Competency: {competency}",
    ]
    definition = get_competency_definition(competency)
    if definition:
        lines.append(f"Definition: {definition}")
    if situation:
        lines += ["--", "Situation:", situation]
    lines += ["--", "Question:", question or "(no question text)"]
    if best_rationale:
        lines += ["--", "A strong answer would:", best_rationale]
    if worst_rationale:
        lines += ["--", "A poor answer would:", worst_rationale]
    lines += ["--", "Candidate answer:", candidate_answer]
    return "\n".join(lines)


def _response_text(jr: Dict[str, Any]) -> str:
    """Extract the model's text from the known Responses API shapes."""
    text = jr.get('output_text') or ''
    if text:
        return text
    parts = []
    for item in jr.get('output') or jr.get('results') or []:
        if isinstance(item, dict):
            for c in item.get('content', []):
                if isinstance(c, dict) and 'text' in c:
                    parts.append(c['text'])
                elif isinstance(c, str):
                    parts.append(c)
        elif isinstance(item, str):
            parts.append(item)
    return '\n'.join(parts)


def parse_evaluation(text: str) -> Dict[str, Any]:
    """Parse ``{"score", "rationale"}`` out of the model reply; score clamped to 0-10."""
    m = re.search(r"\{[\s\S]*\}", text or '')
    if not m:
        raise EvaluatorError(f"evaluator reply contained no JSON object: {(text or '')[:200]!r}")
    try:
        data = json.loads(m.group(0))
        score = float(data['score'])
    except (ValueError, KeyError, TypeError) as e:
        raise EvaluatorError(f"evaluator reply could not be parsed: {e}") from e
    if score != score:  # NaN
        raise EvaluatorError("evaluator returned a NaN score")
    rationale = str(data.get('rationale') or '').strip()
    return {'score': max(0.0, min(10.0, score)), 'rationale': rationale}


def _retry_wait(resp: Optional[requests.Response], backoff: float) -> float:
    ra = resp.headers.get('Retry-After') if resp is not None else None
    if ra:
        try:
            return float(ra)
        except ValueError:
            # Retry-After may be an HTTP-date; fall back to backoff
            pass
    return backoff


def _post_with_retry(body: Dict[str, Any]) -> Dict[str, Any]:
    api_key = current_app.config.get('OPENAI_API_KEY')
    if not api_key:
        raise EvaluatorError('OPENAI_API_KEY is not configured')

    headers = {'Authorization': f'Bearer {api_key}', 'Content-Type': 'application/json'}
    max_attempts = int(current_app.config.get('OPENAI_MAX_ATTEMPTS', 6))
    timeout = float(current_app.config.get('OPENAI_TIMEOUT_SEC', 30))
    backoff = 1.0
    last_error = None

    for attempt in range(1, max_attempts + 1):
        try:
            r = requests.post(RESPONSES_URL, headers=headers, json=body, timeout=timeout)
        except requests.exceptions.RequestException as e:
            # network-level error; retry with backoff
            last_error = e
            current_app.logger.warning('OpenAI network error, attempt %s/%s, retrying in %ss', attempt, max_attempts, backoff)
            time.sleep(backoff + random.uniform(0, 0.5))
            backoff *= 2
            continue

        if r.status_code == 429 or 500 <= r.status_code < 600:
            body_text = r.text or ''
            # quota exhaustion won't clear up by waiting
            if r.status_code == 429 and 'insufficient_quota' in body_text:
                raise EvaluatorError('OpenAI quota exhausted')
            wait = _retry_wait(r, backoff)
            last_error = EvaluatorError(f'OpenAI returned {r.status_code}')
            current_app.logger.warning('OpenAI request returned %s, attempt %s/%s, retrying in %ss; body=%s',
                                       r.status_code, attempt, max_attempts, wait, body_text[:500])
            time.sleep(wait + random.uniform(0, 0.5))
            backoff *= 2
            continue

        if r.status_code >= 400:
            # non-retryable HTTP error
            raise EvaluatorError(f'OpenAI HTTP error {r.status_code}: {(r.text or "")[:500]}')

        try:
            return r.json()
        except ValueError as e:
            raise EvaluatorError('OpenAI returned a non-JSON body') from e

    raise EvaluatorError(f'OpenAI request failed after {max_attempts} attempts: {last_error}')


def gen_competency_evaluation(situation: Optional[str], question: str, best_rationale: Optional[str],
                              worst_rationale: Optional[str], competency: str,
                              candidate_answer: str) -> Dict[str, Any]:
    """Score one answer for one competency.

    Returns ``{"score": float in [0, 10], "rationale": str}``. Must run inside
    an application context. Raises EvaluatorError on any failure.
    """
    prompt = _build_prompt(situation, question, best_rationale, worst_rationale, competency, candidate_answer)
    body = {
        'model': current_app.config.get('OPENAI_MODEL', 'gpt-4o-mini'),
        'input': prompt,
        'max_output_tokens': 400,
        'temperature': 0.2,
    }
    jr = _post_with_retry(body)
    return parse_evaluation(_response_text(jr))

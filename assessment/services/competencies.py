"""Competency names: parsing of the free-text field and standard definitions."""

import difflib
import re
from typing import Optional, Tuple

DEFAULT_COMPETENCY = {
    "sjt": "General Decision Making",
    "interview": "General Suitability",
}

# standardized definitions handed to the evaluator so scoring stays consistent
COMPETENCY_DEFINITIONS = {
    "Adaptability": "Stays effective when circumstances change; adjusts approach and learns new methods under uncertainty.",
    "Aligning": "Coordinates people and effort so individual and team actions serve shared organizational goals.",
    "Analytical skills": "Breaks complex problems into parts and reasons logically from gathered information to sound conclusions.",
    "Coaching and developing others": "Gives guidance, feedback and learning opportunities that help others grow.",
    "Communication": "Exchanges information and ideas clearly, concisely and in a way suited to the audience.",
    "Creativity and innovation": "Generates original ideas and novel solutions; challenges conventional thinking.",
    "Customer Focus": "Understands customer needs, responds to concerns promptly and keeps the relationship positive.",
    "Decision making": "Makes timely, well-informed decisions weighing information, consequences and stakeholders, even under pressure.",
    "Delegation": "Assigns work with the right authority and support while keeping accountability without micromanaging.",
    "Emotional intelligence": "Recognizes and manages own and others' emotions; responds appropriately to emotional cues.",
    "Empathy": "Understands others' perspectives and feelings and responds with consideration.",
    "Integrity": "Acts honestly and ethically, keeps commitments and earns trust through transparent actions.",
    "Leadership": "Gives direction, takes responsibility for outcomes and motivates others toward goals.",
    "Managing conflict": "Addresses disagreement through constructive dialogue and finds mutually acceptable solutions.",
    "Planning and organizing": "Structures tasks, resources and timelines; prioritizes and coordinates to hit objectives.",
    "Problem solving": "Identifies issues, finds root causes and develops workable solutions.",
    "Resilience": "Keeps composure under pressure and recovers quickly from setbacks.",
    "Teamwork": "Collaborates, shares responsibility and supports collective success.",
    "Time management": "Prioritizes and organizes work to meet deadlines across competing responsibilities.",
}

_WS = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    return _WS.sub(" ", (name or "").strip())


def parse_competencies(raw: Optional[str], default: str) -> Tuple[str, ...]:
    """Split a comma-separated competency field into an ordered, de-duplicated tuple.

    Whitespace is collapsed but case is kept, so "Decision Making" and
    "decision making" stay distinct names downstream. Falls back to
    ``(default,)`` when nothing usable remains.
    """
    seen = []
    for part in (raw or "").split(","):
        name = normalize_name(part)
        if name and name not in seen:
            seen.append(name)
    if not seen:
        fallback = normalize_name(default)
        if not fallback:
            raise ValueError("default competency must not be blank")
        seen.append(fallback)
    return tuple(seen)


def get_competency_definition(name: str) -> Optional[str]:
    """Case-insensitive lookup of the standardized description."""
    key = normalize_name(name).lower()
    for known, description in COMPETENCY_DEFINITIONS.items():
        if known.lower() == key:
            return description
    return None


def suggest_competencies(name: str, limit: int = 3) -> list:
    """Closest standardized names for a competency that has no definition."""
    lowered = {k.lower(): k for k in COMPETENCY_DEFINITIONS}
    matches = difflib.get_close_matches(normalize_name(name).lower(), list(lowered), n=limit, cutoff=0.6)
    return [lowered[m] for m in matches]

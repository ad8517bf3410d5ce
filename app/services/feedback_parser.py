"""Parse free-form model output into AIFeedback.

Models often wrap the JSON in prose or markdown fences, so extraction scans
for balanced ``{...}`` spans that decode to JSON objects. Anything that
does not validate yields None; the caller substitutes FALLBACK_FEEDBACK.
"""

import json
import logging
from typing import Any, Iterator, Optional

from pydantic import ValidationError

from app.schemas.feedback import AIFeedback

logger = logging.getLogger(__name__)

FALLBACK_FEEDBACK = AIFeedback(
    overall="Code evaluation completed. Please review the detailed feedback below.",
    codeQuality=75,
    efficiency=70,
    readability=80,
    correctness=75,
    suggestions=["Add error handling", "Improve variable naming", "Add comments"],
    strengths=["Code structure is clear", "Solution addresses the problem"],
    improvements=["Optimize algorithm", "Add input validation"],
    overallScore=75,
)


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Index just past the brace that closes text[start], ignoring braces in strings."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def iter_json_objects(text: Optional[str]) -> Iterator[dict[str, Any]]:
    """Yield every balanced ``{...}`` in ``text`` that decodes to a JSON object, in order."""
    if not text:
        return
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            try:
                value = json.loads(text[start:end])
            except json.JSONDecodeError:
                value = None
            if isinstance(value, dict):
                yield value
        start = text.find("{", start + 1)


def extract_json_object(text: Optional[str]) -> Optional[dict[str, Any]]:
    """Return the first balanced JSON object embedded in ``text``, or None."""
    return next(iter_json_objects(text), None)


def parse_feedback(text: Optional[str]) -> Optional[AIFeedback]:
    """First embedded object that validates as AIFeedback; None when none does.

    Prose such as "return {} for empty input" can precede the real payload, so
    a candidate that fails validation does not end the search.
    """
    last_error: Optional[ValidationError] = None
    for data in iter_json_objects(text):
        try:
            return AIFeedback.model_validate(data)
        except ValidationError as exc:
            last_error = exc

    if last_error is None:
        logger.warning("No JSON object found in evaluation response (%d chars)", len(text or ""))
    else:
        logger.warning("Evaluation response failed validation: %s", last_error.errors()[:3])
    return None

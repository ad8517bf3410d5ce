"""Score submitted code with the generative API."""

import json
import logging

from app.models.daily_task import DailyTask
from app.schemas.feedback import AIFeedback
from app.services import llm_service
from app.services.feedback_parser import FALLBACK_FEEDBACK, parse_feedback
from app.services.llm_service import LLMNotConfiguredError

logger = logging.getLogger(__name__)

EVALUATION_SYSTEM_PROMPT = (
    "You are a senior software engineer reviewing a candidate's solution to a coding task. "
    "Focus on practical aspects relevant to a professional software development environment. "
    "Be constructive and specific. Respond with a single JSON object and nothing else."
)

_RESPONSE_SCHEMA = """\
{
  "overall": "string - brief summary of the solution (2-3 sentences)",
  "codeQuality": number - score 0-100 for code structure, naming, organization,
  "efficiency": number - score 0-100 for algorithm efficiency and performance,
  "readability": number - score 0-100 for code clarity and maintainability,
  "correctness": number - score 0-100 for solution accuracy and completeness,
  "suggestions": ["specific improvement suggestions"],
  "strengths": ["code strengths and good practices"],
  "improvements": ["specific areas to improve"],
  "overallScore": number - aggregated score 0-100
}"""


def build_prompt(task: DailyTask, code: str) -> str:
    expected = (
        json.dumps(task.expected_output_format)
        if task.expected_output_format is not None
        else "not specified"
    )
    return (
        "Evaluate the following user-submitted code for a coding task.\n\n"
        f"Task Title: {task.title}\n"
        f"Task Description: {task.description}\n"
        f"Task Level: {task.level.value}\n"
        f"Expected Output Format: {expected}\n\n"
        f"User's Submitted Code:\n```\n{code}\n```\n\n"
        "Provide the evaluation as valid JSON with exactly these fields:\n"
        f"{_RESPONSE_SCHEMA}\n"
    )


async def evaluate(task: DailyTask, code: str) -> AIFeedback:
    """
    Return feedback for ``code``. Never fails on a bad or missing model response:
    API errors, timeouts and unparseable output all yield FALLBACK_FEEDBACK.

    Raises LLMNotConfiguredError when no API key is set.
    """
    try:
        content, _, _ = await llm_service.chat_complete(
            messages=[
                {"role": "system", "content": EVALUATION_SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(task, code)},
            ],
            temperature=0.2,
            max_tokens=1500,
            retries=1,
        )
    except LLMNotConfiguredError:
        raise
    except Exception as exc:
        logger.warning("Evaluation call failed for task %d, using fallback: %s", task.id, exc)
        return FALLBACK_FEEDBACK

    feedback = parse_feedback(content)
    if feedback is None:
        logger.warning("Unusable evaluation for task %d, using fallback", task.id)
        return FALLBACK_FEEDBACK
    return feedback

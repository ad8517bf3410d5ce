"""Daily task catalog: today's tasks, generated on demand with template fallback."""

import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.crud import crud_daily_task, crud_submission
from app.exceptions import InvalidDistribution
from app.models.base import utcnow
from app.models.daily_task import LEVEL_CONFIG, DailyTask, TaskLevel
from app.models.submission import Submission
from app.schemas.task import TaskDistribution
from app.services import llm_service
from app.services.feedback_parser import extract_json_object

logger = logging.getLogger(__name__)
settings = get_settings()

DISTRIBUTION_PRESETS: dict[str, TaskDistribution] = {
    "easy-focus": TaskDistribution(basic=3, intermediate=0, pro=0),
    "mixed-easy": TaskDistribution(basic=2, intermediate=1, pro=0),
    "balanced": TaskDistribution(basic=1, intermediate=1, pro=1),
    "medium-focus": TaskDistribution(basic=0, intermediate=3, pro=0),
    "mixed-hard": TaskDistribution(basic=0, intermediate=2, pro=1),
    "pro-focus": TaskDistribution(basic=0, intermediate=0, pro=3),
}

# Offline task bank, used whenever the generative API is unavailable or returns
# too few usable tasks for a level.
TEMPLATES: dict[TaskLevel, list[tuple[str, str]]] = {
    TaskLevel.basic: [
        (
            "Array Sum Calculator",
            "Create a function that takes an array of numbers and returns their sum. "
            "Handle edge cases like empty arrays and non-numeric values.",
        ),
        (
            "Palindrome Checker",
            "Write a function that reports whether a string is a palindrome, ignoring "
            "case, whitespace and punctuation.",
        ),
        (
            "Word Frequency Counter",
            "Given a block of text, return each distinct word with the number of times it "
            "appears, sorted by frequency then alphabetically.",
        ),
        (
            "FizzBuzz Variations",
            "Implement FizzBuzz for 1..n where the divisor/word pairs are passed in as a "
            "parameter instead of being hard-coded.",
        ),
    ],
    TaskLevel.intermediate: [
        (
            "API Rate Limiter",
            "Implement a rate limiter that allows a maximum of N requests per time window. "
            "Include proper error handling and cleanup mechanisms.",
        ),
        (
            "LRU Cache",
            "Build a least-recently-used cache with O(1) get and put, a fixed capacity, and "
            "eviction of the least recently accessed entry.",
        ),
        (
            "JSON Diff",
            "Write a function that compares two nested JSON documents and returns the list "
            "of added, removed and changed paths.",
        ),
        (
            "Retry With Backoff",
            "Wrap an unreliable function so it retries with exponential backoff and jitter, "
            "giving up after a configurable number of attempts.",
        ),
    ],
    TaskLevel.pro: [
        (
            "Distributed Cache System",
            "Design and implement a distributed cache system with consistent hashing, "
            "replication, and failure recovery mechanisms.",
        ),
        (
            "Job Scheduler With Dependencies",
            "Implement a scheduler that runs jobs respecting a dependency graph, detects "
            "cycles, and executes independent jobs concurrently.",
        ),
        (
            "Expression Evaluator",
            "Write a tokenizer and parser for arithmetic expressions with variables, operator "
            "precedence and parentheses, then evaluate them safely.",
        ),
        (
            "Event Sourced Ledger",
            "Model a bank ledger as an append-only event log with snapshots, balance "
            "projections and idempotent command handling.",
        ),
    ],
}

GENERATION_SYSTEM_PROMPT = """\
You design short, self-contained coding challenges for software engineers.
Return ONLY a JSON object matching this schema:
{
  "tasks": [
    {"level": "basic|intermediate|pro", "title": "string", "description": "string"}
  ]
}
Rules:
- basic tasks fit in 30 minutes, intermediate in 60, pro in 120
- descriptions state inputs, outputs and edge cases to handle
- no markdown fences
"""


def day_window(now: datetime) -> tuple[datetime, datetime]:
    """UTC calendar-day bounds [start, end) containing ``now``."""
    start = datetime(now.year, now.month, now.day)
    return start, start + timedelta(days=1)


def resolve_distribution(
    distribution: Optional[TaskDistribution] = None, preset: Optional[str] = None
) -> TaskDistribution:
    if preset is not None:
        if preset not in DISTRIBUTION_PRESETS:
            raise InvalidDistribution(
                details=f"Unknown preset '{preset}'. Choose one of: "
                + ", ".join(DISTRIBUTION_PRESETS)
            )
        return DISTRIBUTION_PRESETS[preset]
    return distribution or TaskDistribution()


def _template_tasks(level: TaskLevel, count: int) -> list[tuple[str, str]]:
    bank = TEMPLATES[level]
    picked = random.sample(bank, k=min(count, len(bank)))
    while len(picked) < count:
        picked.append(bank[len(picked) % len(bank)])
    return picked


async def _generate_texts(counts: dict[TaskLevel, int]) -> dict[TaskLevel, list[tuple[str, str]]]:
    """Ask the generative API for task texts; missing slots are filled from templates."""
    generated: dict[TaskLevel, list[tuple[str, str]]] = {level: [] for level in TaskLevel}
    wanted = ", ".join(f"{n} {level.value}" for level, n in counts.items() if n)

    if not settings.llm_configured:
        logger.info("LLM not configured; generating tasks from templates")
    else:
        await _fill_from_llm(generated, wanted)

    texts: dict[TaskLevel, list[tuple[str, str]]] = {}
    for level, n in counts.items():
        chosen = generated[level][:n]
        if len(chosen) < n:
            chosen += _template_tasks(level, n - len(chosen))
        texts[level] = chosen
    return texts


async def _fill_from_llm(
    generated: dict[TaskLevel, list[tuple[str, str]]], wanted: str
) -> None:
    try:
        content, _, _ = await llm_service.chat_complete(
            messages=[
                {"role": "system", "content": GENERATION_SYSTEM_PROMPT},
                {"role": "user", "content": f"Create {wanted} task(s) for today."},
            ],
            temperature=0.9,
            max_tokens=2000,
        )
        data = extract_json_object(content) or {}
        for item in data.get("tasks", []):
            if not isinstance(item, dict):
                continue
            try:
                level = TaskLevel(item.get("level"))
            except ValueError:
                continue
            title = str(item.get("title") or "").strip()[:200]
            description = str(item.get("description") or "").strip()
            if title and description:
                generated[level].append((title, description))
    except Exception as exc:
        logger.warning("LLM task generation failed, using templates: %s", exc)


async def generate_tasks(
    db: AsyncSession,
    distribution: Optional[TaskDistribution] = None,
    now: Optional[datetime] = None,
) -> list[DailyTask]:
    """Create exactly ``distribution.total`` tasks dated ``now``."""
    distribution = distribution or TaskDistribution()
    if not 1 <= distribution.total <= settings.MAX_TASKS_PER_BATCH:
        raise InvalidDistribution(
            details=f"Total task count must be between 1 and {settings.MAX_TASKS_PER_BATCH}"
        )

    now = now or utcnow()
    expires_at = now + timedelta(hours=settings.TASK_TTL_HOURS)
    counts = distribution.counts()
    texts = await _generate_texts(counts)

    tasks: list[DailyTask] = []
    for level in TaskLevel:
        for title, description in texts.get(level, []):
            task = DailyTask(
                level=level,
                title=title,
                description=description,
                time_limit_minutes=LEVEL_CONFIG[level].time_limit_minutes,
                created_at=now,
                updated_at=now,
                expires_at=expires_at,
            )
            db.add(task)
            tasks.append(task)
    await db.flush()

    logger.info(
        "Generated %d daily task(s): %s",
        len(tasks),
        ", ".join(f"{level.value}={n}" for level, n in counts.items()),
    )
    return tasks


async def list_today_tasks(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> tuple[list[DailyTask], Optional[Submission]]:
    """Today's unexpired tasks plus the caller's submission for today, if any.

    Generates a default batch when none exist. A failed generation degrades to
    an empty task list instead of failing the call.
    """
    now = now or utcnow()
    day_start, day_end = day_window(now)

    tasks = list(await crud_daily_task.get_active_in_window(db, day_start, day_end, now))
    if not tasks:
        try:
            await generate_tasks(db, now=now)
            tasks = list(
                await crud_daily_task.get_active_in_window(db, day_start, day_end, now)
            )
        except Exception:
            logger.exception("Daily task generation failed; returning no tasks")
            await db.rollback()
            tasks = []

    submission = await crud_submission.get_for_user_on_day(db, user_id, now.date())
    return tasks, submission

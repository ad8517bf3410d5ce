"""Daily task generation and today's listing."""

import json
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from app.config import get_settings
from app.exceptions import InvalidDistribution
from app.models.daily_task import TaskLevel
from app.schemas.task import GenerateTasksRequest, TaskDistribution
from app.services import submission_service, task_catalog
from conftest import make_task

NOW = datetime(2026, 3, 10, 12, 0)


@pytest.mark.asyncio
async def test_default_generation_is_one_per_level(db):
    tasks = await task_catalog.generate_tasks(db, now=NOW)

    assert sorted(t.level.value for t in tasks) == ["basic", "intermediate", "pro"]
    limits = {t.level: t.time_limit_minutes for t in tasks}
    assert limits == {TaskLevel.basic: 30, TaskLevel.intermediate: 60, TaskLevel.pro: 120}
    assert all(t.expires_at == NOW + timedelta(hours=24) for t in tasks)
    assert all(t.created_at == NOW for t in tasks)
    assert all(t.title and t.description for t in tasks)


@pytest.mark.asyncio
async def test_generation_honours_distribution(db):
    tasks = await task_catalog.generate_tasks(
        db, TaskDistribution(basic=2, intermediate=0, pro=1), now=NOW
    )

    levels = [t.level for t in tasks]
    assert levels.count(TaskLevel.basic) == 2
    assert levels.count(TaskLevel.pro) == 1
    assert len(tasks) == 3


@pytest.mark.asyncio
async def test_generation_repeats_templates_when_bank_is_small(db):
    tasks = await task_catalog.generate_tasks(
        db, TaskDistribution(basic=6, intermediate=0, pro=0), now=NOW
    )
    assert len(tasks) == 6


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "distribution",
    [
        TaskDistribution(basic=0, intermediate=0, pro=0),
        TaskDistribution(basic=5, intermediate=5, pro=1),
    ],
)
async def test_generation_rejects_out_of_range_totals(db, distribution):
    with pytest.raises(InvalidDistribution):
        await task_catalog.generate_tasks(db, distribution, now=NOW)


def test_presets_resolve():
    resolved = task_catalog.resolve_distribution(preset="pro-focus")
    assert (resolved.basic, resolved.intermediate, resolved.pro) == (0, 0, 3)
    assert task_catalog.resolve_distribution().total == 3


def test_unknown_preset_rejected():
    with pytest.raises(InvalidDistribution) as exc_info:
        task_catalog.resolve_distribution(preset="impossible")
    assert "balanced" in exc_info.value.details


def test_request_cannot_mix_preset_and_distribution():
    with pytest.raises(ValueError):
        GenerateTasksRequest(distribution=TaskDistribution(), preset="balanced")


def test_day_window():
    start, end = task_catalog.day_window(datetime(2026, 3, 10, 23, 59, 59))
    assert start == datetime(2026, 3, 10)
    assert end == datetime(2026, 3, 11)


# ---------------------------------------------------------------------------
# LLM-backed generation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_llm_tasks_used_and_gaps_filled_from_templates(db, monkeypatch):
    monkeypatch.setattr(get_settings(), "LLM_API_KEY", "test-key")
    reply = "Here you go: " + json.dumps(
        {
            "tasks": [
                {"level": "basic", "title": "Roman Numerals", "description": "Convert ints."},
                {"level": "legendary", "title": "Ignored", "description": "Unknown level."},
                {"level": "pro", "title": "", "description": "Missing title."},
            ]
        }
    )
    with patch(
        "app.services.task_catalog.llm_service.chat_complete",
        new_callable=AsyncMock,
        return_value=(reply, 10, 10),
    ):
        tasks = await task_catalog.generate_tasks(db, now=NOW)

    by_level = {t.level: t for t in tasks}
    assert by_level[TaskLevel.basic].title == "Roman Numerals"
    template_titles = {title for title, _ in task_catalog.TEMPLATES[TaskLevel.pro]}
    assert by_level[TaskLevel.pro].title in template_titles
    assert len(tasks) == 3


@pytest.mark.asyncio
async def test_llm_failure_falls_back_to_templates(db, monkeypatch):
    monkeypatch.setattr(get_settings(), "LLM_API_KEY", "test-key")
    with patch(
        "app.services.task_catalog.llm_service.chat_complete",
        new_callable=AsyncMock,
        side_effect=RuntimeError("LLM API failed"),
    ):
        tasks = await task_catalog.generate_tasks(db, now=NOW)

    assert len(tasks) == 3
    for task in tasks:
        assert task.title in {title for title, _ in task_catalog.TEMPLATES[task.level]}


# ---------------------------------------------------------------------------
# today's listing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_today_generates_when_empty_and_orders_by_level(db, user):
    tasks, submission = await task_catalog.list_today_tasks(db, user.id, now=NOW)

    assert [t.level for t in tasks] == [TaskLevel.basic, TaskLevel.intermediate, TaskLevel.pro]
    assert submission is None


@pytest.mark.asyncio
async def test_today_does_not_regenerate(db, user):
    first, _ = await task_catalog.list_today_tasks(db, user.id, now=NOW)
    second, _ = await task_catalog.list_today_tasks(db, user.id, now=NOW + timedelta(hours=2))

    assert [t.id for t in first] == [t.id for t in second]


@pytest.mark.asyncio
async def test_today_excludes_expired_and_other_days(db, user):
    expired = await make_task(db, created_at=NOW - timedelta(hours=2), ttl_hours=1)
    yesterday = await make_task(db, created_at=NOW - timedelta(days=1), ttl_hours=48)
    live = await make_task(db, level=TaskLevel.pro, created_at=NOW - timedelta(hours=1))

    tasks, _ = await task_catalog.list_today_tasks(db, user.id, now=NOW)

    ids = [t.id for t in tasks]
    assert ids == [live.id]
    assert expired.id not in ids
    assert yesterday.id not in ids


@pytest.mark.asyncio
async def test_today_includes_callers_submission(db, user, other_user):
    tasks, _ = await task_catalog.list_today_tasks(db, user.id, now=NOW)
    chosen = await submission_service.choose_task(db, user.id, tasks[0].id, now=NOW)

    _, mine = await task_catalog.list_today_tasks(db, user.id, now=NOW)
    _, theirs = await task_catalog.list_today_tasks(db, other_user.id, now=NOW)

    assert mine.id == chosen.id
    assert theirs is None


@pytest.mark.asyncio
async def test_today_degrades_to_empty_when_generation_fails(db, user):
    with patch(
        "app.services.task_catalog.generate_tasks",
        new_callable=AsyncMock,
        side_effect=RuntimeError("database unavailable"),
    ):
        tasks, submission = await task_catalog.list_today_tasks(db, user.id, now=NOW)

    assert tasks == []
    assert submission is None

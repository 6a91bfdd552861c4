"""
Status-change notifications: edge map, de-dup, sink isolation, inbox.
"""
from __future__ import annotations

import asyncio

from app.domain.tasks.models import ACTIVE, COMPLETED, IN_PROGRESS, OVERDUE
from app.domain.tasks.notifications import (
    TASK_COMPLETED,
    TASK_OVERDUE,
    TASK_STARTED,
    InAppInbox,
    StatusChangeNotifier,
    notice_for,
)
from app.infra.notify.telegram import render_notice
from fakes import BrokenSink, FakeClock, MemoryInbox, MemoryStatusMemory, RecordingSink, SeqIds, at


def build(sinks, memory=None):
    return StatusChangeNotifier(memory or MemoryStatusMemory(), sinks, FakeClock(at(2025, 3, 10)))


def test_only_three_edges_notify():
    assert notice_for(ACTIVE, IN_PROGRESS).kind == TASK_STARTED
    assert notice_for(IN_PROGRESS, OVERDUE).kind == TASK_OVERDUE
    assert notice_for(OVERDUE, COMPLETED).kind == TASK_COMPLETED
    assert notice_for(ACTIVE, COMPLETED) is None
    assert notice_for(IN_PROGRESS, COMPLETED) is None
    assert notice_for(ACTIVE, OVERDUE) is None
    assert notice_for(None, IN_PROGRESS) is None


def test_repeated_observations_notify_once_per_edge():
    async def run():
        sink = RecordingSink()
        notifier = build([sink])
        for status in (ACTIVE, ACTIVE, IN_PROGRESS, IN_PROGRESS, OVERDUE):
            await notifier.observe("t1", "Report", status)

        assert sink.kinds == [TASK_STARTED, TASK_OVERDUE]

    asyncio.run(run())


def test_first_observation_is_silent():
    async def run():
        sink = RecordingSink()
        notifier = build([sink])
        assert await notifier.observe("t1", "Report", OVERDUE) is None
        assert await notifier.observe("t1", "Report", COMPLETED) == TASK_COMPLETED
        assert sink.sent == [(TASK_COMPLETED, "t1", "Report")]

    asyncio.run(run())


def test_memory_survives_restart():
    async def run():
        memory = MemoryStatusMemory()
        first = build([RecordingSink()], memory)
        await first.observe("t1", "Report", ACTIVE)
        await first.observe("t1", "Report", IN_PROGRESS)

        sink = RecordingSink()
        second = build([sink], memory)
        await second.observe("t1", "Report", IN_PROGRESS)
        assert sink.sent == []
        assert memory.data == {"t1": IN_PROGRESS}

    asyncio.run(run())


def test_previous_status_is_used_only_without_memory():
    async def run():
        sink = RecordingSink()
        notifier = build([sink], MemoryStatusMemory({"t1": IN_PROGRESS}))
        # stored In Progress wins over the caller's hint
        assert await notifier.observe("t1", "Report", OVERDUE, previous=ACTIVE) == TASK_OVERDUE
        assert await notifier.observe("t2", "Other", IN_PROGRESS, previous=ACTIVE) == TASK_STARTED

    asyncio.run(run())


def test_broken_sink_does_not_silence_others():
    async def run():
        sink = RecordingSink()
        memory = MemoryStatusMemory()
        notifier = build([BrokenSink(), sink], memory)
        await notifier.observe("t1", "Report", ACTIVE)
        await notifier.observe("t1", "Report", IN_PROGRESS)

        assert sink.kinds == [TASK_STARTED]
        assert memory.data["t1"] == IN_PROGRESS

    asyncio.run(run())


def test_forget_drops_memory():
    async def run():
        memory = MemoryStatusMemory()
        notifier = build([RecordingSink()], memory)
        await notifier.observe("t1", "Report", ACTIVE)
        await notifier.on_removed("t1")
        assert memory.data == {}

    asyncio.run(run())


def test_inbox_receives_headed_messages():
    async def run():
        repo = MemoryInbox()
        inbox = InAppInbox(repo, FakeClock(at(2025, 3, 10)), SeqIds())
        notifier = build([inbox])
        await notifier.observe("t1", "Report", ACTIVE)
        await notifier.observe("t1", "Report", IN_PROGRESS)
        await notifier.observe("t1", "Report", OVERDUE)

        items = await inbox.recent()
        assert [n.heading for n in items] == ["Task Overdue", "Task Started"]
        assert items[0].message == '"Report" is now overdue'
        assert await inbox.unread_count() == 2

        await inbox.mark_read(items[0].notification_id)
        assert await inbox.unread_count() == 1
        await inbox.mark_all_read()
        assert await inbox.unread_count() == 0
        await inbox.clear()
        assert await inbox.recent() == []

    asyncio.run(run())


def test_render_notice_escapes_title():
    text = render_notice(TASK_STARTED, "<b>x</b>")
    assert text.startswith("<b>Task Started</b>")
    assert "&lt;b&gt;x&lt;/b&gt;" in text

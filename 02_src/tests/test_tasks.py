"""Tests for TaskRunner."""

import asyncio
import logging


class TestTaskRunner:
    """Tests for detached task execution."""

    async def test_submit_does_not_block(self, task_runner):
        started = asyncio.Event()
        release = asyncio.Event()

        async def job():
            started.set()
            await release.wait()

        task = task_runner.submit(job(), name="job")

        assert not task.done()
        await started.wait()
        assert task_runner.pending == 1

        release.set()
        await task_runner.drain()
        assert task_runner.pending == 0

    async def test_failure_is_logged_not_raised(self, task_runner, caplog):
        async def boom():
            raise ValueError("kaboom")

        with caplog.at_level(logging.ERROR):
            task_runner.submit(boom(), name="boom")
            await task_runner.drain()

        assert "boom" in caplog.text
        assert "kaboom" in caplog.text

    async def test_drain_waits_for_nested_tasks(self, task_runner):
        results = []

        async def child():
            await asyncio.sleep(0)
            results.append("child")

        async def parent():
            task_runner.submit(child(), name="child")
            results.append("parent")

        task_runner.submit(parent(), name="parent")
        await task_runner.drain()

        assert results == ["parent", "child"]

    async def test_drain_with_nothing_pending(self, task_runner):
        await task_runner.drain()

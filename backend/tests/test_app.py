"""Tests for the application entry point and service factory."""

import asyncio
import unittest
from typing import List

from backend.app import create_app, serve
from backend.src.lifecycle import (
    DependencyUnreachableError,
    ExitCode,
    Orchestrator,
    Phase,
)
from backend.src.services import create_orchestrator
from backend.src.services.cache import CacheHandle
from backend.src.services.config import ConfigurationProvider
from backend.src.services.store import StorageHandle
from backend.tests.fakes import FakeListener, build_handles


class TestServe(unittest.IsolatedAsyncioTestCase):
    """Test cases for running the orchestrator to completion."""

    async def test_startup_failure_exits_with_failure_code(self) -> None:
        events: List[str] = []
        handles = build_handles(
            events, storage={"fail_with": DependencyUnreachableError("disk gone")}
        )
        orchestrator = Orchestrator(handles, listener=FakeListener(events))

        with self.assertLogs("backend.app", level="ERROR"):
            exit_code = await serve(orchestrator)

        self.assertEqual(exit_code, 1)
        self.assertNotIn("listener.bind", events)
        self.assertEqual(events[-1], "config.teardown")

    async def test_clean_shutdown_exits_with_zero(self) -> None:
        events: List[str] = []
        orchestrator = Orchestrator(build_handles(events), listener=FakeListener(events))
        serving = asyncio.create_task(serve(orchestrator))

        for _ in range(100):
            if orchestrator.phase is Phase.SERVING:
                break
            await asyncio.sleep(0.01)
        self.assertIs(orchestrator.phase, Phase.SERVING)

        await orchestrator.shutdown("SIGTERM")

        self.assertEqual(await asyncio.wait_for(serving, timeout=5), ExitCode.OK)
        self.assertEqual(
            events,
            [
                "config.initialize",
                "storage.initialize",
                "cache.initialize",
                "listener.bind",
                "listener.unbind",
                "cache.teardown",
                "storage.teardown",
                "config.teardown",
            ],
        )


class TestServeToCompletion(unittest.TestCase):
    """Test cases running serve() under asyncio.run, as main() does."""

    def test_signal_then_failure_still_finishes_teardown(self) -> None:
        events: List[str] = []
        tasks: List["asyncio.Task[None]"] = []

        async def request_shutdown() -> None:
            tasks.append(asyncio.ensure_future(orchestrator.shutdown("SIGTERM")))
            await asyncio.sleep(0)

        handles = build_handles(
            events,
            config={"teardown_delay": 0.05},
            storage={
                "before_fail": request_shutdown,
                "fail_with": DependencyUnreachableError("disk gone"),
            },
        )
        orchestrator = Orchestrator(handles, listener=FakeListener(events))

        with self.assertLogs("backend.app", level="ERROR"):
            exit_code = asyncio.run(serve(orchestrator))

        self.assertEqual(exit_code, 1)
        self.assertEqual(events, ["config.initialize", "storage.initialize", "config.teardown"])
        self.assertIs(orchestrator.phase, Phase.STOPPED)


class TestCreateApp(unittest.TestCase):
    def test_applies_request_size_limit(self) -> None:
        events: List[str] = []
        app = create_app(Orchestrator(build_handles(events)))

        self.assertEqual(app.config["MAX_CONTENT_LENGTH"], 10 * 1024 * 1024)
        self.assertIn("health", app.blueprints)

    def test_apps_can_be_created_repeatedly(self) -> None:
        first = create_app(Orchestrator(build_handles([])))
        second = create_app(Orchestrator(build_handles([])))

        self.assertIsNot(first, second)


class TestCreateOrchestrator(unittest.TestCase):
    def test_handles_are_registered_in_dependency_order(self) -> None:
        orchestrator = create_orchestrator(grace_period=3.0, environ={})

        self.assertEqual(
            [handle.name for handle in orchestrator.handles], ["config", "storage", "cache"]
        )
        self.assertIsInstance(orchestrator.get("config"), ConfigurationProvider)
        self.assertIsInstance(orchestrator.get("storage"), StorageHandle)
        self.assertIsInstance(orchestrator.get("cache"), CacheHandle)
        self.assertEqual(orchestrator.grace_period, 3.0)
        self.assertIs(orchestrator.phase, Phase.NOT_STARTED)


if __name__ == "__main__":
    unittest.main()

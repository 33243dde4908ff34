"""Tests for the SignalGateway."""

import asyncio
import os
import signal
import unittest
from typing import List
from unittest.mock import AsyncMock, Mock

from backend.src.lifecycle import ExitCode, Orchestrator, SignalGateway
from backend.tests.fakes import FakeListener, build_handles


class TestSignalGateway(unittest.IsolatedAsyncioTestCase):
    """Test cases for routing termination signals into shutdown."""

    async def test_handler_only_calls_shutdown_with_signal_name(self) -> None:
        orchestrator = Mock(spec=Orchestrator)
        orchestrator.shutdown = AsyncMock()
        gateway = SignalGateway(orchestrator)

        gateway._handle(signal.SIGTERM)
        await asyncio.sleep(0)

        orchestrator.shutdown.assert_awaited_once_with("SIGTERM")
        orchestrator.startup.assert_not_called()

    async def test_repeated_signals_tear_down_once(self) -> None:
        events: List[str] = []
        handles = build_handles(events)
        orchestrator = Orchestrator(handles, listener=FakeListener(events))
        await orchestrator.startup()
        gateway = SignalGateway(orchestrator)

        gateway._handle(signal.SIGTERM)
        gateway._handle(signal.SIGINT)
        gateway._handle(signal.SIGTERM)

        self.assertEqual(await orchestrator.wait_stopped(), ExitCode.OK)
        self.assertEqual([handle.teardown_calls for handle in handles], [1, 1, 1])
        self.assertEqual(events.count("listener.unbind"), 1)

    @unittest.skipUnless(os.name == "posix", "requires POSIX signals")
    async def test_real_sigterm_triggers_shutdown(self) -> None:
        events: List[str] = []
        orchestrator = Orchestrator(build_handles(events), listener=FakeListener(events))
        await orchestrator.startup()
        gateway = SignalGateway(orchestrator)
        gateway.register()
        try:
            os.kill(os.getpid(), signal.SIGTERM)
            exit_code = await asyncio.wait_for(orchestrator.wait_stopped(), timeout=5)
        finally:
            gateway.unregister()

        self.assertEqual(exit_code, ExitCode.OK)
        self.assertIn("config.teardown", events)

    async def test_unregister_without_register_is_noop(self) -> None:
        gateway = SignalGateway(Mock(spec=Orchestrator))
        gateway.unregister()


if __name__ == "__main__":
    unittest.main()

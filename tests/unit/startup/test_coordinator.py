"""
Tests for host readiness in gate and cooperative scheduling modes.
"""

import asyncio
import logging

import pytest

from catalog_service.errors import Cancelled
from catalog_service.startup.coordinator import (
    HostLifecycleCoordinator,
    ReadinessState,
    SchedulingMode,
)
from catalog_service.startup.orchestrator import OrchestrationState


class GatedOrchestrator:
    """Orchestrator double that runs until released or cancelled."""

    def __init__(self, honour_signal=True):
        self.release = asyncio.Event()
        self.started = asyncio.Event()
        self.honour_signal = honour_signal
        self.state = OrchestrationState.NOT_STARTED
        self.runs = 0

    async def run(self, signal):
        self.runs += 1
        self.state = OrchestrationState.RUNNING_SYNC
        self.started.set()
        try:
            if self.honour_signal:
                await signal.guard(self.release.wait(), operation="sync")
            else:
                await self.release.wait()
        except Cancelled:
            self.state = OrchestrationState.FAILED
            return
        self.state = OrchestrationState.COMPLETED

    def to_dict(self):
        return {"state": self.state.value}


@pytest.mark.asyncio
async def test_gate_mode_blocks_until_orchestration_finishes(events):
    orchestrator = GatedOrchestrator()
    coordinator = HostLifecycleCoordinator(orchestrator, mode=SchedulingMode.GATE, events=events)

    start = asyncio.create_task(coordinator.start())
    await orchestrator.started.wait()

    assert not start.done()
    assert coordinator.readiness is ReadinessState.IN_PROGRESS
    assert not coordinator.is_accepting_requests

    orchestrator.release.set()
    await asyncio.wait_for(start, timeout=5)

    assert coordinator.readiness is ReadinessState.READY
    assert coordinator.is_accepting_requests
    assert orchestrator.state is OrchestrationState.COMPLETED
    assert [f["readiness"] for f in events.of("host.readiness_changed")] == ["in_progress", "ready"]

    await coordinator.stop()


@pytest.mark.asyncio
async def test_cooperative_mode_accepts_immediately(events):
    orchestrator = GatedOrchestrator()
    coordinator = HostLifecycleCoordinator(
        orchestrator, mode=SchedulingMode.COOPERATIVE, events=events
    )

    assert not coordinator.is_accepting_requests

    await asyncio.wait_for(coordinator.start(), timeout=1)

    assert coordinator.is_accepting_requests
    assert coordinator.readiness is ReadinessState.IN_PROGRESS

    orchestrator.release.set()
    await coordinator.stop()

    assert coordinator.readiness is ReadinessState.READY
    assert orchestrator.runs == 1


@pytest.mark.asyncio
async def test_shutdown_releases_gate(events, caplog):
    caplog.set_level(logging.INFO, logger="catalog_service.startup.coordinator")
    orchestrator = GatedOrchestrator()
    coordinator = HostLifecycleCoordinator(orchestrator, mode="gate", events=events)

    start = asyncio.create_task(coordinator.start())
    await orchestrator.started.wait()

    coordinator.request_shutdown()
    await asyncio.wait_for(start, timeout=5)

    assert not coordinator.is_accepting_requests
    messages = [record.getMessage() for record in caplog.records]
    assert "Gate released by shutdown request: host not accepting requests" in messages
    assert "Gate released: host now accepting requests" not in messages
    await coordinator.stop()
    assert orchestrator.state is OrchestrationState.FAILED


@pytest.mark.asyncio
async def test_stop_cancels_task_that_ignores_signal(events):
    orchestrator = GatedOrchestrator(honour_signal=False)
    coordinator = HostLifecycleCoordinator(
        orchestrator, mode=SchedulingMode.COOPERATIVE, shutdown_timeout=0.05, events=events
    )

    await coordinator.start()
    await orchestrator.started.wait()
    await asyncio.wait_for(coordinator.stop(), timeout=5)

    assert coordinator.readiness is ReadinessState.READY
    assert coordinator.to_dict()["shutdown_requested"] is True


@pytest.mark.asyncio
async def test_start_twice_is_rejected(events):
    orchestrator = GatedOrchestrator()
    coordinator = HostLifecycleCoordinator(orchestrator, events=events)

    await coordinator.start()
    with pytest.raises(RuntimeError):
        await coordinator.start()

    orchestrator.release.set()
    await coordinator.stop()


def test_to_dict_before_start(events):
    coordinator = HostLifecycleCoordinator(GatedOrchestrator(), mode="gate", events=events)

    assert coordinator.to_dict() == {
        "mode": "gate",
        "readiness": "not_started",
        "accepting_requests": False,
        "shutdown_requested": False,
        "orchestration": {"state": "not_started"},
    }

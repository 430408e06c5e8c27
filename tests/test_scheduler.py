"""Auto-scan timer, driven by a manual ticker instead of real time."""

import asyncio

import pytest

from conftest import FakeMedia, FakeVision, analysis_failure, settle
from roadhud.orchestrator.scheduler import AutoScanScheduler


class TestAutoScanScheduler:

    @pytest.mark.asyncio
    async def test_ticks_once_per_interval(self, ticker):
        fired = []
        s = AutoScanScheduler(lambda: fired.append(1), interval_s=4.0, sleep=ticker.sleep)
        s.start()
        await settle()

        await ticker.advance()
        await ticker.advance()
        await ticker.advance()

        assert len(fired) == 3
        assert s.ticks == 3
        assert set(ticker.sleeps) == {4.0}
        s.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_tick(self, ticker):
        fired = []
        s = AutoScanScheduler(lambda: fired.append(1), sleep=ticker.sleep)
        s.start()
        await settle()
        assert ticker.pending == 1

        s.stop()
        await ticker.advance()
        await ticker.advance()

        assert fired == []
        assert not s.running

    @pytest.mark.asyncio
    async def test_stop_after_sleep_resolved_has_no_trailing_tick(self, ticker):
        fired = []
        s = AutoScanScheduler(lambda: fired.append(1), sleep=ticker.sleep)
        s.start()
        await settle()

        # wake the sleeper but stop before the task gets to run again
        for fut in list(ticker._waiters):
            fut.set_result(None)
        s.stop()
        await settle()

        assert fired == []

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, ticker):
        s = AutoScanScheduler(lambda: None, sleep=ticker.sleep)
        s.stop()
        s.start()
        s.stop()
        s.stop()
        assert not s.running

    @pytest.mark.asyncio
    async def test_start_restarts_timer(self, ticker):
        fired = []
        s = AutoScanScheduler(lambda: fired.append(1), sleep=ticker.sleep)
        s.start()
        await settle()
        s.start()
        await settle()

        await ticker.advance()

        # only the second timer is alive
        assert len(fired) == 1
        s.stop()


class TestAutoScanLoop:

    @pytest.mark.asyncio
    async def test_tick_already_fired_when_disabled_does_not_scan(self, build, ticker):
        vision = FakeVision([analysis_failure()])
        c = build(vision=vision)
        await c.start_camera()
        c.set_auto_scan(True)
        await settle()

        # the timer fires and hands off its scan, then auto-scan goes off
        for fut in list(ticker._waiters):
            fut.set_result(None)
        await asyncio.sleep(0)
        assert c.scheduler.ticks == 1
        c.set_auto_scan(False)
        await settle()

        assert vision.calls == 0
        assert c.error is None
        assert c.analyzing is False

    @pytest.mark.asyncio
    async def test_tick_from_previous_session_does_not_scan(self, build, ticker):
        vision = FakeVision()
        c = build(vision=vision)
        await c.start_camera()
        c.set_auto_scan(True)
        await settle()

        for fut in list(ticker._waiters):
            fut.set_result(None)
        await asyncio.sleep(0)
        c.reset()
        await c.start_camera()
        c.set_auto_scan(True)
        await settle()

        assert vision.calls == 0
        assert c.result is None
        c.set_auto_scan(False)

    @pytest.mark.asyncio
    async def test_failures_are_quiet_and_ticking_continues(self, build, ticker):
        vision = FakeVision([analysis_failure(), analysis_failure()])
        c = build(vision=vision)
        await c.load_upload("clip.mp4", "video/mp4", b"...")
        c.set_auto_scan(True)
        await settle()

        await ticker.advance()
        assert vision.calls == 1
        assert c.error is None
        assert c.analyzing is False

        await ticker.advance()
        assert vision.calls == 2
        assert c.error is None
        assert c.analyzing is False

        await ticker.advance()
        assert vision.calls == 3
        assert c.result is not None
        assert c.scheduler.ticks == 3
        assert c.scheduler.running
        c.set_auto_scan(False)

    @pytest.mark.asyncio
    async def test_suppressed_failures_are_logged(self, build, ticker, status):
        c = build(vision=FakeVision([analysis_failure("HTTP 500")]))
        await c.start_camera()
        c.set_auto_scan(True)
        await settle()
        await ticker.advance()

        assert c.error is None
        assert any("HTTP 500" in line for line in status.logs)
        c.set_auto_scan(False)

    @pytest.mark.asyncio
    async def test_disable_means_no_further_scans(self, build, ticker):
        vision = FakeVision()
        c = build(vision=vision)
        await c.start_camera()
        c.set_auto_scan(True)
        await settle()
        await ticker.advance()
        assert vision.calls == 1

        c.set_auto_scan(False)
        await ticker.advance()
        await ticker.advance()

        assert vision.calls == 1
        assert c.auto_scan is False

    @pytest.mark.asyncio
    async def test_reset_stops_timer(self, build, ticker):
        vision = FakeVision()
        media = FakeMedia()
        c = build(vision=vision, media=media)
        await c.start_camera()
        c.set_auto_scan(True)
        await settle()

        c.reset()
        await ticker.advance()

        assert vision.calls == 0
        assert not c.scheduler.running

    @pytest.mark.asyncio
    async def test_tick_during_flight_is_dropped(self, build, ticker):
        import asyncio
        gate = asyncio.Event()
        vision = FakeVision(gate=gate)
        c = build(vision=vision)
        await c.start_camera()
        c.set_auto_scan(True)
        await settle()

        await ticker.advance()       # starts a scan that stays in flight
        await ticker.advance()       # second tick finds the slot held
        manual = await c.request_scan()
        gate.set()
        await settle()

        assert manual.error_code == "BUSY"
        assert vision.calls == 1
        assert vision.max_active == 1
        c.set_auto_scan(False)

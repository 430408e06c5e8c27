import asyncio
import time
import uuid
from collections import deque

from roadhud.orchestrator import errors
from roadhud.orchestrator.contracts import (
    CaptureSession, HistoryItem, HudSnapshot, Mode, ScanResult, ScanState, SourceKind,
)
from roadhud.orchestrator.scheduler import AutoScanScheduler
from roadhud.orchestrator.voice import VoiceAlertArbiter


class CaptureController:
    """Capture/analyze state machine.

    Idle -> LiveCapture | PlaybackOrStill, and reset() back to Idle.
    At most one scan holds the analysis slot at a time; manual and
    scheduled scans share it and are dropped, not queued, while it is held.
    """

    def __init__(self, vision, media, speech, status_store, interval_s: float = 4.0,
                 sleep=asyncio.sleep, history_size: int = 20):
        self.vision = vision
        self.media = media
        self.status = status_store
        self.voice = VoiceAlertArbiter(speech, status_store)
        self.scheduler = AutoScanScheduler(self._on_tick, interval_s, sleep)

        self.mode = Mode.IDLE
        self.session: CaptureSession | None = None
        self.scan = ScanState()
        self.result = None
        self.error: str | None = None
        self.history: deque[HistoryItem] = deque(maxlen=history_size)

        self._slot: object | None = None
        self._generation = 0
        # bumped whenever auto-scan is switched or the session changes
        self._auto_epoch = 0
        self._tasks: set[asyncio.Task] = set()

    @property
    def analyzing(self) -> bool:
        return self.scan.analyzing

    @property
    def auto_scan(self) -> bool:
        return self.scan.auto_scan

    # ---- mode transitions ----

    def _require_idle(self, action: str):
        if self.mode != Mode.IDLE:
            raise errors.InvalidTransition(f"{action} requires idle mode (current: {self.mode.value})")

    async def start_camera(self) -> bool:
        """Enter LiveCapture. On acquisition failure stays Idle and sets the HUD error."""
        self._require_idle("start_camera")
        self.status.log("camera: requesting stream")
        try:
            source = await self.media.open_camera()
        except errors.AcquisitionError as e:
            self.status.log(f"camera: acquisition failed: {e}")
            self.error = errors.MSG_CAMERA
            return False
        if self.mode != Mode.IDLE:
            source.release()
            raise errors.InvalidTransition("mode changed while the camera was opening")
        self._begin_session(Mode.LIVE_CAPTURE, SourceKind.VIDEO, source)
        return True

    async def load_upload(self, filename: str, content_type: str | None, data: bytes) -> SourceKind:
        """Enter PlaybackOrStill with an uploaded image or video."""
        self._require_idle("upload")
        try:
            source = await self.media.open_upload(filename, content_type, data)
        except errors.AcquisitionError as e:
            self.status.log(f"upload: rejected {filename}: {e}")
            raise
        if self.mode != Mode.IDLE:
            source.release()
            raise errors.InvalidTransition("mode changed while the upload was loading")
        self._begin_session(Mode.PLAYBACK_OR_STILL, source.kind, source)
        return source.kind

    def _begin_session(self, mode: Mode, kind: SourceKind, source):
        self._stop_auto_scan()
        self._generation += 1
        self.session = CaptureSession(mode=mode, kind=kind, source=source, generation=self._generation)
        self.mode = mode
        self.result = None
        self.error = None
        self.history.clear()
        self.status.log(f"mode: {mode.value} source={kind.value}")

    def reset(self):
        """Back to Idle: stop the source, disable auto-scan, drop result and error. Idempotent."""
        self._stop_auto_scan()
        self.scan.analyzing = False
        if self.session is not None:
            self.session.source.release()
            self.status.log("mode: reset to idle")
        self.session = None
        # a scan still in flight keeps the slot, but its outcome is dropped
        self._generation += 1
        self.mode = Mode.IDLE
        self.result = None
        self.error = None
        self.history.clear()

    # ---- scanning ----

    async def request_scan(self) -> ScanResult:
        if self._slot is not None:
            self.status.log("scan: already in flight, dropped")
            return ScanResult(ok=False, error_code=errors.ERR_BUSY)
        session = self.session
        if session is None:
            return ScanResult(ok=False, error_code=errors.ERR_NOT_READY)

        token = object()
        self._slot = token
        gen = session.generation
        t0 = time.monotonic()
        try:
            try:
                frame = await session.source.grab()
            except Exception as e:
                self.status.log(f"scan: frame grab failed {type(e).__name__}: {e}")
                return ScanResult(ok=False, error_code=errors.ERR_NOT_READY)
            if frame is None:
                return ScanResult(ok=False, error_code=errors.ERR_NOT_READY)
            if gen != self._generation:
                return ScanResult(ok=False, error_code=errors.ERR_STALE)

            self.scan.analyzing = True
            try:
                result = await self.vision.analyze(frame)
            except Exception as e:
                dt = int((time.monotonic() - t0) * 1000)
                self.status.log(f"scan: error {type(e).__name__}: {e}")
                if gen != self._generation:
                    return ScanResult(ok=False, duration_ms=dt, error_code=errors.ERR_STALE)
                self.scan.analyzing = False
                # periodic scans fail quietly; the next tick is the retry
                if not self.scan.auto_scan:
                    self.error = errors.MSG_ANALYSIS
                return ScanResult(ok=False, duration_ms=dt, error_code=errors.ERR_ANALYSIS_FAILED)

            dt = int((time.monotonic() - t0) * 1000)
            if gen != self._generation:
                self.status.log("scan: result arrived after reset, dropped")
                return ScanResult(ok=False, duration_ms=dt, error_code=errors.ERR_STALE)

            self.result = result
            self.history.append(HistoryItem(id=str(uuid.uuid4())[:8], result=result))
            self.error = None
            self.scan.analyzing = False
            self.status.log(f"scan: {result.safety_level.value} dt={dt}ms")
            self.voice.announce(result, auto_scan=self.scan.auto_scan)
            return ScanResult(ok=True, duration_ms=dt, result=result)
        finally:
            if gen == self._generation:
                self.scan.analyzing = False
            if self._slot is token:
                self._slot = None

    def set_auto_scan(self, enabled: bool):
        if not enabled:
            if self.scan.auto_scan:
                self.status.log("auto_scan: off")
            self._stop_auto_scan()
            return
        if self.session is None or self.session.kind != SourceKind.VIDEO:
            raise errors.InvalidTransition("auto-scan needs a live camera or video source")
        self._auto_epoch += 1
        self.scan.auto_scan = True
        self.scheduler.start()
        self.status.log(f"auto_scan: on every {self.scheduler.interval_s:g}s")

    def _stop_auto_scan(self):
        self.scheduler.stop()
        self.scan.auto_scan = False
        self._auto_epoch += 1

    def _on_tick(self):
        task = asyncio.get_running_loop().create_task(self._tick_scan(self._auto_epoch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _tick_scan(self, epoch: int):
        # a tick spawned before auto-scan was switched off or the session changed never scans
        if epoch != self._auto_epoch or not self.scan.auto_scan:
            return None
        return await self.request_scan()

    def set_voice(self, enabled: bool):
        self.voice.set_enabled(enabled)

    # ---- views / teardown ----

    def snapshot(self) -> HudSnapshot:
        return HudSnapshot(
            mode=self.mode,
            kind=self.session.kind if self.session else None,
            analyzing=self.scan.analyzing,
            auto_scan=self.scan.auto_scan,
            voice_enabled=self.voice.enabled,
            result=self.result,
            error=self.error,
            history=list(self.history),
        )

    async def close(self):
        """Shutdown teardown: release the source, stop timers and speech. Idempotent."""
        self.reset()
        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.voice.speech.cancel()
        if hasattr(self.voice.speech, "aclose"):
            await self.voice.speech.aclose()
        await self.vision.aclose()

"""Shared fakes for the capture/analyze loop: vision, media, frame sources, ticker."""

import asyncio

import pytest

from roadhud.adapters.camera.base import FrameSource, MediaOpener
from roadhud.adapters.tts.mock_speech import MockSpeech
from roadhud.adapters.vision.base import VisionAdapter
from roadhud.orchestrator.contracts import (
    AnalysisResult, Hazard, RoadSign, SafetyLevel, Severity, SourceKind,
)
from roadhud.orchestrator.controller import CaptureController
from roadhud.orchestrator.errors import AcquisitionError, AnalysisError, ERR_UNSUPPORTED_MEDIA
from roadhud.services.status_store import StatusStore

FRAME = "data:image/jpeg;base64,/9j/AAAA"


def make_result(level: SafetyLevel = SafetyLevel.SAFE, recommendation: str = "Road is clear.",
                hazards=(), signs=(), timestamp: str = "10:00:00 AM") -> AnalysisResult:
    return AnalysisResult(
        signs=tuple(signs),
        hazards=tuple(hazards),
        safety_level=level,
        recommendation=recommendation,
        timestamp=timestamp,
    )


POTHOLE = Hazard(type="Pothole", severity=Severity.HIGH, description="Deep pothole ahead")
STOP_SIGN = RoadSign(type="Stop", meaning="Stop completely", location="Top Right")


class FakeVision(VisionAdapter):
    """Returns (or raises) scripted outcomes in order; can hold calls open on a gate."""

    def __init__(self, outcomes=None, gate: asyncio.Event | None = None, observe=None):
        self.outcomes = list(outcomes or [])
        self.gate = gate
        self.observe = observe
        self.frames: list[str] = []
        self.active = 0
        self.max_active = 0
        self.closed = False

    async def analyze(self, frame: str) -> AnalysisResult:
        self.frames.append(frame)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.observe is not None:
                self.observe()
            if self.gate is not None:
                await self.gate.wait()
            outcome = self.outcomes.pop(0) if self.outcomes else make_result()
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.active -= 1

    @property
    def calls(self) -> int:
        return len(self.frames)

    async def aclose(self):
        self.closed = True


class FakeSource(FrameSource):
    def __init__(self, kind: SourceKind = SourceKind.VIDEO, frame: str | None = FRAME):
        self.kind = kind
        self.frame = frame
        self.released = 0

    async def grab(self) -> str | None:
        return self.frame

    def release(self):
        self.released += 1


class FakeMedia(MediaOpener):
    def __init__(self, camera_ok: bool = True, frame: str | None = FRAME):
        self.camera_ok = camera_ok
        self.frame = frame
        self.opened: list[FakeSource] = []

    async def open_camera(self) -> FrameSource:
        if not self.camera_ok:
            raise AcquisitionError("permission denied")
        src = FakeSource(SourceKind.VIDEO, self.frame)
        self.opened.append(src)
        return src

    async def open_upload(self, filename, content_type, data) -> FrameSource:
        ctype = content_type or ""
        if ctype.startswith("video/"):
            kind = SourceKind.VIDEO
        elif ctype.startswith("image/"):
            kind = SourceKind.IMAGE
        else:
            raise AcquisitionError(f"unsupported media type {ctype}", code=ERR_UNSUPPORTED_MEDIA)
        src = FakeSource(kind, self.frame)
        self.opened.append(src)
        return src


class ManualTicker:
    """Stands in for asyncio.sleep; sleepers wake only on advance()."""

    def __init__(self):
        self._waiters: list[asyncio.Future] = []
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        await fut

    @property
    def pending(self) -> int:
        return sum(1 for f in self._waiters if not f.done())

    async def advance(self):
        waiters, self._waiters = self._waiters, []
        for fut in waiters:
            if not fut.done():
                fut.set_result(None)
        await settle()


async def settle(rounds: int = 20):
    for _ in range(rounds):
        await asyncio.sleep(0)


def analysis_failure(msg: str = "HTTP 503") -> AnalysisError:
    return AnalysisError(msg)


@pytest.fixture
def status():
    return StatusStore()


@pytest.fixture
def speech():
    return MockSpeech()


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def build(status, speech, ticker):
    """Factory: build(vision=..., media=...) -> CaptureController wired to fakes."""
    def _build(vision=None, media=None, interval_s: float = 4.0):
        return CaptureController(
            vision or FakeVision(),
            media or FakeMedia(),
            speech,
            status,
            interval_s=interval_s,
            sleep=ticker.sleep,
        )
    return _build

"""
OpenCV frame sources: live webcam and uploaded video files.

Blocking OpenCV calls run in a worker thread; the source is only ever read by
one grab() at a time (the controller holds the scan slot around it).
"""
import asyncio
import base64
import os
import tempfile
import time

import cv2

from roadhud.adapters.camera.base import FrameSource
from roadhud.orchestrator.contracts import SourceKind
from roadhud.orchestrator.errors import AcquisitionError, ERR_CAMERA_UNAVAILABLE, ERR_UNSUPPORTED_MEDIA

JPEG_PREFIX = "data:image/jpeg;base64,"


def encode_jpeg(frame, quality: int = 80) -> str | None:
    """Encode a BGR frame at its native size. Zero-sized frames are not ready."""
    if frame is None or frame.size == 0 or frame.shape[0] == 0 or frame.shape[1] == 0:
        return None
    ok, buf = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        return None
    return JPEG_PREFIX + base64.b64encode(buf.tobytes()).decode("ascii")


class _CaptureSource(FrameSource):
    kind = SourceKind.VIDEO

    def __init__(self, status_store, cap, quality: int = 80):
        self.status = status_store
        self.quality = quality
        self._cap = cap
        self._reading = False
        self._closed = False

    def _read(self):
        return self._cap.read()

    async def grab(self) -> str | None:
        if self._closed or self._cap is None:
            return None
        self._reading = True
        try:
            ret, frame = await asyncio.to_thread(self._read)
        finally:
            self._reading = False
            if self._closed:
                self._close_cap()
        if self._closed or not ret:
            return None
        return encode_jpeg(frame, self.quality)

    def release(self):
        if self._closed:
            return
        self._closed = True
        # a read in progress releases the capture when it returns
        if not self._reading:
            self._close_cap()

    def _close_cap(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None


class CV2Camera(_CaptureSource):
    """Live webcam. CAMERA_INDEX selects the device."""

    @classmethod
    async def open(cls, status_store, index: int = 0, quality: int = 80) -> "CV2Camera":
        cap = await asyncio.to_thread(cv2.VideoCapture, index)
        if not cap.isOpened():
            cap.release()
            status_store.log(f"cv2_camera: failed to open device {index}")
            raise AcquisitionError(f"camera {index} unavailable", code=ERR_CAMERA_UNAVAILABLE)
        status_store.log(f"cv2_camera: device {index} open")
        return cls(status_store, cap, quality)

    def release(self):
        if not self._closed:
            self.status.log("cv2_camera: released")
        super().release()


class CV2VideoFile(_CaptureSource):
    """Uploaded video, played back on the wall clock and looped."""

    def __init__(self, status_store, cap, path: str, duration_ms: float, quality: int = 80, clock=time.monotonic):
        super().__init__(status_store, cap, quality)
        self.path = path
        self.duration_ms = duration_ms
        self._clock = clock
        self._started = clock()

    @classmethod
    async def open(cls, status_store, filename: str, data: bytes, quality: int = 80, clock=time.monotonic) -> "CV2VideoFile":
        suffix = os.path.splitext(filename)[1] or ".mp4"
        fd, path = tempfile.mkstemp(prefix="roadhud-", suffix=suffix)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        cap = await asyncio.to_thread(cv2.VideoCapture, path)
        fps = cap.get(cv2.CAP_PROP_FPS) if cap.isOpened() else 0
        frames = cap.get(cv2.CAP_PROP_FRAME_COUNT) if cap.isOpened() else 0
        if not cap.isOpened() or fps <= 0 or frames <= 0:
            cap.release()
            os.unlink(path)
            status_store.log(f"cv2_video: cannot decode {filename}")
            raise AcquisitionError(f"cannot decode video {filename}", code=ERR_UNSUPPORTED_MEDIA)
        duration_ms = frames / fps * 1000.0
        status_store.log(f"cv2_video: loaded {filename} ({duration_ms / 1000:.1f}s)")
        return cls(status_store, cap, path, duration_ms, quality, clock)

    def position_ms(self) -> float:
        return ((self._clock() - self._started) * 1000.0) % self.duration_ms

    def _read(self):
        self._cap.set(cv2.CAP_PROP_POS_MSEC, self.position_ms())
        return self._cap.read()

    def _close_cap(self):
        super()._close_cap()
        if self.path and os.path.exists(self.path):
            os.unlink(self.path)

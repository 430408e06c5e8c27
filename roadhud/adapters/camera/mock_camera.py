"""Mock camera: cycles through the JPEGs in MOCK_FRAMES_DIR for testing without a webcam."""
import base64
from itertools import cycle
from pathlib import Path

from roadhud.adapters.camera.base import FrameSource
from roadhud.orchestrator.contracts import SourceKind
from roadhud.orchestrator.errors import AcquisitionError


class MockCamera(FrameSource):
    kind = SourceKind.VIDEO

    def __init__(self, status_store, frames_dir: str | Path):
        self.status = status_store
        jpegs = sorted(Path(frames_dir).glob("*.jpg")) if frames_dir else []
        if not jpegs:
            self.status.log(f"mock_camera: no frames found in {frames_dir}")
            raise AcquisitionError(f"no mock frames in {frames_dir}")
        self._frames = cycle(jpegs)
        self._released = False

    async def grab(self) -> str | None:
        if self._released:
            return None
        chosen = next(self._frames)
        self.status.log(f"mock_camera: serving {chosen.name}")
        return "data:image/jpeg;base64," + base64.b64encode(chosen.read_bytes()).decode("ascii")

    def release(self):
        self._released = True

"""Uploaded still image: served as-is, no re-rasterization."""
import base64

from roadhud.adapters.camera.base import FrameSource
from roadhud.orchestrator.contracts import SourceKind
from roadhud.orchestrator.errors import AcquisitionError, ERR_UNSUPPORTED_MEDIA

SUPPORTED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}


class StillImage(FrameSource):
    kind = SourceKind.IMAGE

    def __init__(self, data: bytes, content_type: str = "image/jpeg"):
        if content_type not in SUPPORTED_IMAGE_TYPES:
            raise AcquisitionError(f"unsupported image type {content_type}", code=ERR_UNSUPPORTED_MEDIA)
        if not data:
            raise AcquisitionError("empty image", code=ERR_UNSUPPORTED_MEDIA)
        self._data_url = f"data:{content_type};base64," + base64.b64encode(data).decode("ascii")
        self._released = False

    async def grab(self) -> str | None:
        if self._released:
            return None
        return self._data_url

    def release(self):
        self._released = True

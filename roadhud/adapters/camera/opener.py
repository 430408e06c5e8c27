import mimetypes

from roadhud.adapters.camera.base import FrameSource, MediaOpener
from roadhud.adapters.camera.cv2_camera import CV2Camera, CV2VideoFile
from roadhud.adapters.camera.mock_camera import MockCamera
from roadhud.adapters.camera.still_image import StillImage
from roadhud.orchestrator.errors import AcquisitionError, ERR_UNSUPPORTED_MEDIA


def resolve_content_type(filename: str, content_type: str | None) -> str:
    if content_type and content_type != "application/octet-stream":
        return content_type.lower()
    guessed, _ = mimetypes.guess_type(filename)
    if guessed is None:
        raise AcquisitionError(f"cannot tell media type of {filename}", code=ERR_UNSUPPORTED_MEDIA)
    return guessed


class CV2MediaOpener(MediaOpener):
    def __init__(self, status_store, camera_index: int = 0, quality: int = 80,
                 camera_adapter: str = "cv2", mock_frames_dir: str | None = None):
        self.status = status_store
        self.camera_index = camera_index
        self.quality = quality
        self.camera_adapter = camera_adapter
        self.mock_frames_dir = mock_frames_dir

    async def open_camera(self) -> FrameSource:
        if self.camera_adapter == "mock":
            return MockCamera(self.status, self.mock_frames_dir)
        return await CV2Camera.open(self.status, self.camera_index, self.quality)

    async def open_upload(self, filename: str, content_type: str | None, data: bytes) -> FrameSource:
        ctype = resolve_content_type(filename, content_type)
        if ctype.startswith("video/"):
            return await CV2VideoFile.open(self.status, filename, data, self.quality)
        if ctype.startswith("image/"):
            self.status.log(f"upload: image {filename} ({len(data)} bytes)")
            return StillImage(data, ctype)
        raise AcquisitionError(f"unsupported media type {ctype}", code=ERR_UNSUPPORTED_MEDIA)

from abc import ABC, abstractmethod

from roadhud.orchestrator.contracts import SourceKind


class FrameSource(ABC):
    kind: SourceKind

    @abstractmethod
    async def grab(self) -> str | None:
        """Produce one frame as a base64 data URL, or None if the source is not ready yet."""
        ...

    def release(self):
        """Stop the source and free its device or file. Safe to call twice."""


class MediaOpener(ABC):
    @abstractmethod
    async def open_camera(self) -> FrameSource:
        """Acquire the live camera. Raises AcquisitionError on failure."""
        ...

    @abstractmethod
    async def open_upload(self, filename: str, content_type: str | None, data: bytes) -> FrameSource:
        """Load an uploaded image or video. Raises AcquisitionError if unsupported."""
        ...

import re
from datetime import datetime

from roadhud.orchestrator.contracts import AnalysisResult

_DATA_URL_PREFIX = re.compile(r"^data:image/(png|jpeg|jpg|webp);base64,")


def split_data_url(frame: str) -> tuple[str, str]:
    """Return (mime_type, raw_base64). Frames without a prefix are assumed JPEG."""
    m = _DATA_URL_PREFIX.match(frame)
    if m is None:
        return "image/jpeg", frame
    fmt = "jpeg" if m.group(1) == "jpg" else m.group(1)
    return f"image/{fmt}", frame[m.end():]


def now_stamp() -> str:
    return datetime.now().strftime("%I:%M:%S %p")


class VisionAdapter:
    async def analyze(self, frame: str) -> AnalysisResult:
        """Analyze one encoded frame (base64, optionally a data URL).

        Single attempt. Raises AnalysisError on any failure.
        """
        raise NotImplementedError

    async def aclose(self):
        pass

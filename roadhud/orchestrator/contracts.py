from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List


class Mode(str, Enum):
    IDLE = "idle"
    LIVE_CAPTURE = "live_capture"
    PLAYBACK_OR_STILL = "playback_or_still"


class SourceKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"   # live camera counts as video


class SafetyLevel(str, Enum):
    SAFE = "SAFE"
    CAUTION = "CAUTION"
    DANGER = "DANGER"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class RoadSign:
    type: str                  # e.g. "Speed Limit" | "Stop"
    meaning: str
    location: str              # relative position in frame, e.g. "Top Right"


@dataclass(frozen=True)
class Hazard:
    type: str                  # e.g. "Pothole" | "Pedestrian"
    severity: Severity
    description: str


@dataclass(frozen=True)
class AnalysisResult:
    signs: tuple[RoadSign, ...]
    hazards: tuple[Hazard, ...]
    safety_level: SafetyLevel
    recommendation: str
    timestamp: str


@dataclass
class CaptureSession:
    mode: Mode
    kind: SourceKind
    source: object             # FrameSource owned by the controller
    generation: int


@dataclass
class ScanState:
    analyzing: bool = False
    auto_scan: bool = False


@dataclass
class ScanResult:
    ok: bool
    duration_ms: int = 0
    error_code: Optional[str] = None
    result: Optional[AnalysisResult] = None


@dataclass(frozen=True)
class HistoryItem:
    id: str
    result: AnalysisResult


@dataclass
class HudSnapshot:
    mode: Mode
    kind: Optional[SourceKind]
    analyzing: bool
    auto_scan: bool
    voice_enabled: bool
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    history: List[HistoryItem] = field(default_factory=list)

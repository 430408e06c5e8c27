from typing import Literal, Optional

from pydantic import BaseModel

from roadhud.orchestrator.contracts import AnalysisResult, HudSnapshot


class RoadSignOut(BaseModel):
    type: str
    meaning: str
    location: str


class HazardOut(BaseModel):
    type: str
    severity: Literal["LOW", "MEDIUM", "HIGH"]
    description: str


class AnalysisOut(BaseModel):
    signs: list[RoadSignOut]
    hazards: list[HazardOut]
    safetyLevel: Literal["SAFE", "CAUTION", "DANGER"]
    recommendation: str
    timestamp: str

    @classmethod
    def from_result(cls, r: AnalysisResult) -> "AnalysisOut":
        return cls(
            signs=[RoadSignOut(type=s.type, meaning=s.meaning, location=s.location) for s in r.signs],
            hazards=[HazardOut(type=h.type, severity=h.severity.value, description=h.description) for h in r.hazards],
            safetyLevel=r.safety_level.value,
            recommendation=r.recommendation,
            timestamp=r.timestamp,
        )


class HistoryItemOut(AnalysisOut):
    id: str


class StatusResponse(BaseModel):
    mode: Literal["idle", "live_capture", "playback_or_still"]
    source_kind: Optional[Literal["image", "video"]] = None
    analyzing: bool
    auto_scan: bool
    voice_enabled: bool
    result: Optional[AnalysisOut] = None
    error: Optional[str] = None       # user-visible HUD error
    logs: list[str]

    @classmethod
    def from_snapshot(cls, snap: HudSnapshot, logs: list[str]) -> "StatusResponse":
        return cls(
            mode=snap.mode.value,
            source_kind=snap.kind.value if snap.kind else None,
            analyzing=snap.analyzing,
            auto_scan=snap.auto_scan,
            voice_enabled=snap.voice_enabled,
            result=AnalysisOut.from_result(snap.result) if snap.result else None,
            error=snap.error,
            logs=logs,
        )


class UploadRequest(BaseModel):
    filename: str
    content_type: Optional[str] = None
    data: str  # base64 file content


class ModeResponse(BaseModel):
    ok: bool
    mode: str
    source_kind: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class ScanResponse(BaseModel):
    ok: bool
    duration_ms: int
    error_code: Optional[str] = None
    result: Optional[AnalysisOut] = None


class ToggleRequest(BaseModel):
    enabled: bool


class ToggleResponse(BaseModel):
    ok: bool
    enabled: bool
    error: Optional[str] = None

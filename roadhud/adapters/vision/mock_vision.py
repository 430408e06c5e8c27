import random

from roadhud.adapters.vision.base import VisionAdapter, now_stamp
from roadhud.orchestrator.contracts import AnalysisResult, Hazard, RoadSign, SafetyLevel, Severity

_CANNED = [
    (SafetyLevel.SAFE, (), "Road is clear. Maintain current speed."),
    (SafetyLevel.CAUTION,
     (Hazard(type="Pedestrian", severity=Severity.MEDIUM, description="Pedestrian near the curb on the right"),),
     "Reduce speed and watch the right side."),
    (SafetyLevel.DANGER,
     (Hazard(type="Pothole", severity=Severity.HIGH, description="Deep pothole in the current lane"),),
     "Slow down and steer around the pothole."),
]


class MockVision(VisionAdapter):
    """Offline analyzer: ignores the frame, returns a random canned verdict."""

    def __init__(self, status_store):
        self.status = status_store

    async def analyze(self, frame: str) -> AnalysisResult:
        level, hazards, rec = random.choice(_CANNED)
        self.status.log(f"mock_vision: {level.value}")
        return AnalysisResult(
            signs=(RoadSign(type="Speed Limit", meaning="Maximum 50 km/h", location="Top Right"),),
            hazards=hazards,
            safety_level=level,
            recommendation=rec,
            timestamp=now_stamp(),
        )

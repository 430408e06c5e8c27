"""
Gemini road-scene analyzer.

Calls the Gemini `generateContent` REST endpoint with the frame inline, a fixed
instruction, and a JSON response schema. Requires GEMINI_API_KEY (or API_KEY)
in the environment or .env.

Uses httpx directly, no Google SDK needed.
"""
import json

import httpx
from pydantic import BaseModel, ValidationError

from roadhud.adapters.vision.base import VisionAdapter, now_stamp, split_data_url
from roadhud.orchestrator.contracts import (
    AnalysisResult, Hazard, RoadSign, SafetyLevel, Severity,
)
from roadhud.orchestrator.errors import AnalysisError
from roadhud.services.config import GEMINI_DEFAULT_BASE_URL, GEMINI_DEFAULT_MODEL

_PROMPT = (
    "Analyze this road scene for an autonomous driving system. "
    "Identify road signs, detect potholes or road damage, and spot obstacles. "
    "Provide a safety assessment and driving recommendation."
)

_SYSTEM = (
    "You are an advanced autonomous vehicle vision system. Your priority is safety. "
    "Be precise about road signs and extremely vigilant about hazards like potholes and obstacles."
)

# Low temperature: near-identical frames should get the same verdict
TEMPERATURE = 0.2

ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "signs": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "type": {"type": "STRING", "description": "Type of sign (e.g., Speed Limit, Stop, Yield)"},
                    "meaning": {"type": "STRING", "description": "What the sign indicates"},
                    "location": {"type": "STRING", "description": "Relative location in the image (e.g., Top Right, Center)"},
                },
                "required": ["type", "meaning", "location"],
            },
            "description": "List of identified road signs.",
        },
        "hazards": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "type": {"type": "STRING", "description": "Type of hazard (e.g., Pothole, Pedestrian, Animal, Debris)"},
                    "severity": {"type": "STRING", "enum": ["LOW", "MEDIUM", "HIGH"], "description": "Severity of the hazard"},
                    "description": {"type": "STRING", "description": "Details about the hazard"},
                },
                "required": ["type", "severity", "description"],
            },
            "description": "List of detected hazards including potholes and obstacles.",
        },
        "safetyLevel": {
            "type": "STRING",
            "enum": ["SAFE", "CAUTION", "DANGER"],
            "description": "Overall safety assessment of the scene.",
        },
        "recommendation": {
            "type": "STRING",
            "description": "Driving recommendation for the driver or autonomous system.",
        },
    },
    "required": ["signs", "hazards", "safetyLevel", "recommendation"],
}


class _SignReply(BaseModel):
    type: str
    meaning: str
    location: str


class _HazardReply(BaseModel):
    type: str
    severity: Severity
    description: str


class SceneReply(BaseModel):
    """Model reply as constrained by ANALYSIS_SCHEMA."""
    signs: list[_SignReply]
    hazards: list[_HazardReply]
    safetyLevel: SafetyLevel
    recommendation: str

    def to_result(self, timestamp: str) -> AnalysisResult:
        return AnalysisResult(
            signs=tuple(RoadSign(type=s.type, meaning=s.meaning, location=s.location) for s in self.signs),
            hazards=tuple(Hazard(type=h.type, severity=h.severity, description=h.description) for h in self.hazards),
            safety_level=self.safetyLevel,
            recommendation=self.recommendation,
            timestamp=timestamp,
        )


def build_request(frame: str) -> dict:
    mime, data = split_data_url(frame)
    return {
        "systemInstruction": {"parts": [{"text": _SYSTEM}]},
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"inlineData": {"mimeType": mime, "data": data}},
                    {"text": _PROMPT},
                ],
            }
        ],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": ANALYSIS_SCHEMA,
            "temperature": TEMPERATURE,
        },
    }


def reply_text(body) -> str | None:
    if not isinstance(body, dict):
        raise AnalysisError("response body is not an object")
    candidates = body.get("candidates") or []
    if not isinstance(candidates, list):
        raise AnalysisError("candidates is not a list")
    if not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, dict):
        raise AnalysisError("malformed candidate")
    content = first.get("content") or {}
    if not isinstance(content, dict):
        raise AnalysisError("malformed candidate")
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        raise AnalysisError("malformed candidate")
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    return text or None


def parse_reply(text: str) -> AnalysisResult:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AnalysisError(f"reply is not JSON: {e}") from e
    try:
        reply = SceneReply.model_validate(data)
    except ValidationError as e:
        raise AnalysisError(f"reply does not match schema: {e.error_count()} error(s)") from e
    return reply.to_result(now_stamp())


class GeminiVision(VisionAdapter):
    def __init__(self, status_store, api_key: str, model: str = GEMINI_DEFAULT_MODEL,
                 base_url: str = GEMINI_DEFAULT_BASE_URL, timeout: float = 30.0,
                 client: httpx.AsyncClient | None = None):
        self.status = status_store
        self.model = model
        self._url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self._headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self.status.log(f"gemini_vision: ready (model={model})")

    async def analyze(self, frame: str) -> AnalysisResult:
        try:
            resp = await self._client.post(self._url, json=build_request(frame), headers=self._headers)
        except httpx.HTTPError as e:
            self.status.log(f"gemini_vision: transport error: {e}")
            raise AnalysisError(f"transport error: {e}") from e

        if not resp.is_success:
            self.status.log(f"gemini_vision: HTTP {resp.status_code} {resp.text[:300]}")
            raise AnalysisError(f"HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise AnalysisError("response body is not JSON") from e

        text = reply_text(body)
        if not text:
            self.status.log("gemini_vision: no response text")
            raise AnalysisError("No response text from Gemini")

        result = parse_reply(text)
        self.status.log(
            f"gemini_vision: {result.safety_level.value} signs={len(result.signs)} hazards={len(result.hazards)}"
        )
        return result

    async def aclose(self):
        await self._client.aclose()

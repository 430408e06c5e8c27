"""
Runtime settings, read from the process environment.

`.env` (next to this package, or ROADHUD_ENV_FILE) is loaded first without
overriding variables already set in the environment.
"""
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_ENV_FILE = Path(__file__).resolve().parents[1] / ".env"

GEMINI_DEFAULT_MODEL = "gemini-2.5-flash"
GEMINI_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass
class Settings:
    gemini_api_key: str | None = None
    gemini_model: str = GEMINI_DEFAULT_MODEL
    gemini_base_url: str = GEMINI_DEFAULT_BASE_URL
    gemini_timeout_s: float = 30.0
    vision_adapter: str = "gemini"     # gemini | mock
    camera_adapter: str = "cv2"        # cv2 | mock
    camera_index: int = 0
    mock_frames_dir: str | None = None
    jpeg_quality: int = 80
    auto_scan_interval_s: float = 4.0
    speech_adapter: str = "local"      # local | mock
    speech_rate: float = 1.1

    @classmethod
    def from_env(cls, env_file: str | os.PathLike | None = None) -> "Settings":
        load_dotenv(dotenv_path=env_file or os.getenv("ROADHUD_ENV_FILE") or DEFAULT_ENV_FILE, override=False)
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
            gemini_model=os.getenv("GEMINI_MODEL", GEMINI_DEFAULT_MODEL),
            gemini_base_url=os.getenv("GEMINI_BASE_URL", GEMINI_DEFAULT_BASE_URL),
            gemini_timeout_s=float(os.getenv("GEMINI_TIMEOUT_S", "30")),
            vision_adapter=os.getenv("VISION_ADAPTER", "gemini").lower(),
            camera_adapter=os.getenv("CAMERA_ADAPTER", "cv2").lower(),
            camera_index=int(os.getenv("CAMERA_INDEX", "0")),
            mock_frames_dir=os.getenv("MOCK_FRAMES_DIR"),
            jpeg_quality=int(os.getenv("JPEG_QUALITY", "80")),
            auto_scan_interval_s=float(os.getenv("AUTO_SCAN_INTERVAL_S", "4.0")),
            speech_adapter=os.getenv("SPEECH_ADAPTER", "local").lower(),
            speech_rate=float(os.getenv("SPEECH_RATE", "1.1")),
        )

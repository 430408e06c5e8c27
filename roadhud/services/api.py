import base64
import binascii
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from roadhud.orchestrator import errors
from roadhud.orchestrator.controller import CaptureController
from roadhud.services.config import Settings
from roadhud.services.models import (
    AnalysisOut, HistoryItemOut, ModeResponse, ScanResponse, StatusResponse,
    ToggleRequest, ToggleResponse, UploadRequest,
)
from roadhud.services.status_store import StatusStore


def build_controller(settings: Settings | None = None, status: StatusStore | None = None) -> CaptureController:
    """Wire adapters from settings (VISION_ADAPTER, CAMERA_ADAPTER, SPEECH_ADAPTER)."""
    settings = settings or Settings.from_env()
    status = status or StatusStore()

    # Vision adapter: gemini | mock  (default: gemini)
    vision = None
    if settings.vision_adapter == "gemini":
        if settings.gemini_api_key:
            from roadhud.adapters.vision.gemini_vision import GeminiVision
            vision = GeminiVision(
                status, api_key=settings.gemini_api_key, model=settings.gemini_model,
                base_url=settings.gemini_base_url, timeout=settings.gemini_timeout_s,
            )
        else:
            status.log("vision: GEMINI_API_KEY not set, falling back to mock")
    if vision is None:
        from roadhud.adapters.vision.mock_vision import MockVision
        vision = MockVision(status)
    status.log(f"vision adapter: {type(vision).__name__}")

    from roadhud.adapters.camera.opener import CV2MediaOpener
    media = CV2MediaOpener(
        status, camera_index=settings.camera_index, quality=settings.jpeg_quality,
        camera_adapter=settings.camera_adapter, mock_frames_dir=settings.mock_frames_dir,
    )
    status.log(f"camera adapter: {settings.camera_adapter}")

    if settings.speech_adapter == "mock":
        from roadhud.adapters.tts.mock_speech import MockSpeech
        speech = MockSpeech(status)
    else:
        from roadhud.adapters.tts.player_local import LocalSpeech
        speech = LocalSpeech(status, rate=settings.speech_rate)
    status.log(f"speech adapter: {type(speech).__name__}")

    return CaptureController(vision, media, speech, status, interval_s=settings.auto_scan_interval_s)


def _decode_upload(data: str) -> bytes:
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    return base64.b64decode(data, validate=True)


def create_app(controller: CaptureController | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        # bound to this app, also when it runs mounted under the web app
        if getattr(app.state, "controller", None) is None:
            app.state.controller = build_controller()
        try:
            yield
        finally:
            # release camera, timers and speech on shutdown
            await app.state.controller.close()

    app = FastAPI(title="roadhud api", lifespan=lifespan)
    app.state.controller = controller

    def ctl() -> CaptureController:
        return app.state.controller

    @app.exception_handler(errors.InvalidTransition)
    async def invalid_transition(request: Request, exc: errors.InvalidTransition):
        ctl().status.log(f"rejected: {exc}")
        return JSONResponse(status_code=409, content={"ok": False, "error": str(exc), "error_code": exc.code})

    @app.get("/status", response_model=StatusResponse)
    def get_status():
        c = ctl()
        return StatusResponse.from_snapshot(c.snapshot(), c.status.tail())

    @app.post("/camera/start", response_model=ModeResponse)
    async def camera_start():
        c = ctl()
        ok = await c.start_camera()
        if not ok:
            return ModeResponse(ok=False, mode=c.mode.value, error=c.error, error_code=errors.ERR_CAMERA_UNAVAILABLE)
        return ModeResponse(ok=True, mode=c.mode.value, source_kind=c.session.kind.value)

    @app.post("/upload", response_model=ModeResponse)
    async def upload(req: UploadRequest):
        c = ctl()
        try:
            data = _decode_upload(req.data)
        except (binascii.Error, ValueError) as e:
            c.status.log(f"upload: decode error: {e}")
            return ModeResponse(ok=False, mode=c.mode.value, error="base64 decode failed",
                                error_code=errors.ERR_UNSUPPORTED_MEDIA)
        try:
            kind = await c.load_upload(req.filename, req.content_type, data)
        except errors.AcquisitionError as e:
            return ModeResponse(ok=False, mode=c.mode.value, error=str(e), error_code=e.code)
        return ModeResponse(ok=True, mode=c.mode.value, source_kind=kind.value)

    @app.post("/scan", response_model=ScanResponse)
    async def scan():
        sr = await ctl().request_scan()
        return ScanResponse(
            ok=sr.ok,
            duration_ms=sr.duration_ms,
            error_code=sr.error_code,
            result=AnalysisOut.from_result(sr.result) if sr.result else None,
        )

    @app.post("/auto_scan", response_model=ToggleResponse)
    async def auto_scan(req: ToggleRequest):
        c = ctl()
        c.set_auto_scan(req.enabled)
        return ToggleResponse(ok=True, enabled=c.auto_scan)

    @app.post("/voice", response_model=ToggleResponse)
    async def voice(req: ToggleRequest):
        c = ctl()
        c.set_voice(req.enabled)
        return ToggleResponse(ok=True, enabled=c.voice.enabled)

    @app.post("/reset", response_model=ModeResponse)
    async def reset():
        c = ctl()
        c.reset()
        return ModeResponse(ok=True, mode=c.mode.value)

    @app.get("/history", response_model=list[HistoryItemOut])
    def history():
        return [
            HistoryItemOut(id=item.id, **AnalysisOut.from_result(item.result).model_dump())
            for item in ctl().history
        ]

    @app.get("/health")
    def health():
        """Report which adapters are wired."""
        c = ctl()
        checks = {
            "api": True,
            "vision_adapter": type(c.vision).__name__,
            "camera_adapter": getattr(c.media, "camera_adapter", type(c.media).__name__),
            "speech_adapter": type(c.voice.speech).__name__,
            "auto_scan_interval_s": c.scheduler.interval_s,
        }
        checks["all_ok"] = checks["api"]
        return checks

    return app


app = create_app()

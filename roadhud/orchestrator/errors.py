# Error codes carried in ScanResult.error_code and API responses
ERR_BUSY = "BUSY"
ERR_NOT_READY = "NOT_READY"
ERR_ANALYSIS_FAILED = "ANALYSIS_FAILED"
ERR_STALE = "STALE"
ERR_CAMERA_UNAVAILABLE = "CAMERA_UNAVAILABLE"
ERR_INVALID_TRANSITION = "INVALID_TRANSITION"
ERR_UNSUPPORTED_MEDIA = "UNSUPPORTED_MEDIA"

# User-visible messages shown on the HUD
MSG_CAMERA = "Could not access camera. Check permissions or try a different browser."
MSG_ANALYSIS = "Analysis failed. Try again."


class HudError(Exception):
    code = "UNKNOWN"


class AcquisitionError(HudError):
    """Camera could not be opened or an upload could not be decoded."""

    def __init__(self, message: str, code: str = ERR_CAMERA_UNAVAILABLE):
        super().__init__(message)
        self.code = code


class AnalysisError(HudError):
    """Model call failed: transport, empty reply, or reply not matching the schema."""
    code = ERR_ANALYSIS_FAILED


class InvalidTransition(HudError):
    code = ERR_INVALID_TRANSITION

from roadhud.adapters.tts.lines import alert_text
from roadhud.orchestrator.contracts import AnalysisResult, SafetyLevel


class VoiceAlertArbiter:
    """Decides whether a new result is spoken, and whether it interrupts."""

    def __init__(self, speech, status_store, enabled: bool = False):
        self.speech = speech
        self.status = status_store
        self.enabled = enabled

    def set_enabled(self, enabled: bool):
        self.enabled = enabled
        self.status.log(f"voice: {'on' if enabled else 'off'}")
        if not enabled:
            self.speech.cancel()

    def announce(self, result: AnalysisResult, auto_scan: bool) -> str | None:
        """Speak the result if policy allows. Returns the text spoken, if any."""
        if not self.enabled:
            return None
        level = result.safety_level
        text = alert_text(level, result.recommendation)
        if level == SafetyLevel.DANGER:
            # never queue a danger alert behind stale speech
            self.speech.cancel()
            self.speech.speak(text)
        elif level == SafetyLevel.CAUTION:
            self.speech.speak(text)
        elif auto_scan:
            # periodic scans would repeat "all clear" every few seconds
            return None
        else:
            self.speech.speak(text)
        return text

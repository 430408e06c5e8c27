from roadhud.adapters.tts.base import SpeechAdapter


class MockSpeech(SpeechAdapter):
    """Records utterances instead of playing them; the last one stays "in progress"."""

    def __init__(self, status_store=None):
        self.status = status_store
        self.spoken: list[str] = []
        self.events: list[tuple[str, str | None]] = []
        self._current: str | None = None

    def speak(self, text: str):
        self.spoken.append(text)
        self.events.append(("speak", text))
        self._current = text
        if self.status is not None:
            self.status.log(f"mock_speech: {text}")

    def cancel(self):
        self.events.append(("cancel", self._current))
        self._current = None

    def finish(self):
        self._current = None

    @property
    def speaking(self) -> bool:
        return self._current is not None

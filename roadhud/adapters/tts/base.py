class SpeechAdapter:
    def speak(self, text: str):
        """Queue an utterance behind whatever is playing. Returns immediately."""
        raise NotImplementedError

    def cancel(self):
        """Drop queued utterances and stop the current one."""
        raise NotImplementedError

    @property
    def speaking(self) -> bool:
        return False

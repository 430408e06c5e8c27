"""
Local speech output, cross-platform.

Priority:
  1. macOS `say`
  2. espeak / espeak-ng (Linux)
  3. Silent log if no TTS tool is available

Utterances run one at a time as asyncio subprocesses; cancel() kills the
current one and drops the queue.
"""
import asyncio
import shutil
import subprocess
import sys
from collections import deque

from roadhud.adapters.tts.base import SpeechAdapter

# words per minute at rate 1.0
_BASE_WPM = 175


class LocalSpeech(SpeechAdapter):
    def __init__(self, status_store, rate: float = 1.1):
        self.status = status_store
        self.rate = rate
        self._pending: deque[str] = deque()
        self._proc: asyncio.subprocess.Process | None = None
        self._worker: asyncio.Task | None = None
        self._generation = 0

    def speak(self, text: str):
        self._pending.append(text)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._drain())

    def cancel(self):
        self._generation += 1
        self._pending.clear()
        if self._proc is not None and self._proc.returncode is None:
            self._proc.kill()

    @property
    def speaking(self) -> bool:
        return bool(self._pending) or (self._proc is not None and self._proc.returncode is None)

    def command(self, text: str) -> list[str] | None:
        wpm = str(int(_BASE_WPM * self.rate))
        if sys.platform == "darwin":
            return ["say", "-r", wpm, text]
        for tool in ("espeak", "espeak-ng"):
            if shutil.which(tool):
                return [tool, "-s", wpm, text]
        return None

    async def _drain(self):
        while self._pending:
            text = self._pending.popleft()
            cmd = self.command(text)
            if cmd is None:
                self.status.log(f"tts: no speech tool available, would say: {text}")
                continue
            gen = self._generation
            self.status.log(f"tts: {text}")
            try:
                proc = await asyncio.create_subprocess_exec(
                    *cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
                )
            except OSError as e:
                self.status.log(f"tts: failed to start {cmd[0]}: {e}")
                continue
            self._proc = proc
            if gen != self._generation:
                # cancelled while the process was starting
                proc.kill()
            try:
                await proc.wait()
            finally:
                self._proc = None

    async def aclose(self):
        self.cancel()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass

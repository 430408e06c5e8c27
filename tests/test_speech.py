import asyncio
import shutil

import pytest

from conftest import settle
from roadhud.adapters.tts.player_local import LocalSpeech


@pytest.mark.asyncio
async def test_no_tool_only_logs(status):
    speech = LocalSpeech(status)
    speech.command = lambda text: None

    speech.speak("Caution. Merge")
    await speech._worker

    assert status.logs[-1].endswith("would say: Caution. Merge")
    assert not speech.speaking


@pytest.mark.asyncio
async def test_utterances_play_in_order(status):
    speech = LocalSpeech(status)
    played = []

    def command(text):
        played.append(text)
        return ["true"]

    speech.command = command
    speech.speak("one")
    speech.speak("two")
    await speech._worker

    assert played == ["one", "two"]


@pytest.mark.asyncio
@pytest.mark.skipif(shutil.which("sleep") is None, reason="needs a sleep binary")
async def test_cancel_kills_current_and_drops_queue(status):
    speech = LocalSpeech(status)
    started = []

    def command(text):
        started.append(text)
        return ["sleep", "30"]

    speech.command = command
    speech.speak("long")
    speech.speak("queued")
    for _ in range(100):
        await settle()
        if speech._proc is not None:
            break
        await asyncio.sleep(0.01)
    assert speech.speaking

    speech.cancel()
    await asyncio.wait_for(speech._worker, timeout=5)

    assert started == ["long"]
    assert not speech.speaking


def test_rate_maps_to_words_per_minute(status, monkeypatch):
    monkeypatch.setattr("roadhud.adapters.tts.player_local.sys.platform", "linux")
    monkeypatch.setattr("roadhud.adapters.tts.player_local.shutil.which",
                        lambda tool: "/usr/bin/espeak" if tool == "espeak" else None)
    speech = LocalSpeech(status, rate=1.1)
    assert speech.command("hi") == ["espeak", "-s", "192", "hi"]


@pytest.mark.asyncio
async def test_missing_tool_binary_is_logged_and_queue_continues(status):
    speech = LocalSpeech(status)
    played = []

    def command(text):
        played.append(text)
        return ["/nonexistent/roadhud-tts-tool"] if text == "first" else ["true"]

    speech.command = command
    speech.speak("first")
    speech.speak("second")
    await speech._worker

    assert played == ["first", "second"]
    assert any("failed to start /nonexistent/roadhud-tts-tool" in line for line in status.logs)
    assert not speech.speaking

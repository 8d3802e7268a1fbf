"""Test doubles for the narration player and sequencer."""
import asyncio
from typing import Any, Callable, List, Optional, Set, Tuple

from workout_voice_coach.playback.audio import ENDED, ERROR, AudioResource


class FakeAudio(AudioResource):
    """Audio resource that 'plays' instantly.

    Sources listed in `fail_on_play` make `play()` raise, sources listed in
    `error_on` report an `error` notification instead of `ended`. With
    `auto_end=False` nothing is reported until `finish()` is called.
    """

    def __init__(self, auto_end: bool = True, fail_on_play: Optional[Set[bytes]] = None,
                 error_on: Optional[Set[bytes]] = None):
        super().__init__()
        self.auto_end = auto_end
        self.fail_on_play = fail_on_play or set()
        self.error_on = error_on or set()
        self.source: Optional[bytes] = None
        self.played: List[bytes] = []
        self.calls: List[str] = []

    @property
    def played_text(self) -> List[str]:
        return [source.decode() for source in self.played]

    def set_source(self, audio: bytes) -> None:
        self.calls.append("set_source")
        self.source = audio

    async def play(self) -> None:
        self.calls.append("play")
        if self.source in self.fail_on_play:
            raise RuntimeError("NotAllowedError: play() failed")
        self.played.append(self.source)
        if not self.auto_end:
            return
        loop = asyncio.get_running_loop()
        if self.source in self.error_on:
            loop.call_soon(self.emit, ERROR, "decode error")
        else:
            loop.call_soon(self.emit, ENDED)

    def finish(self):
        self.emit(ENDED)

    def pause(self) -> None:
        self.calls.append("pause")

    def reset(self) -> None:
        self.calls.append("reset")


async def echo_synthesize(text: str, voice_id: Optional[str], api_key: Optional[str]) -> bytes:
    """Synthesizer double: the 'audio' is the narration text itself."""
    return text.encode()


async def settle(rounds: int = 10):
    """Let queued callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ManualTimer:
    def __init__(self, delay: float, callback: Callable[[], Any]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fired = True
        self.callback()


class ManualScheduler:
    """`call_later` replacement; timers only fire when the test says so."""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, delay: float, callback: Callable[[], Any]) -> ManualTimer:
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def fire_next(self) -> ManualTimer:
        timer = self.pending[0]
        timer.fire()
        return timer


class RecordingPlayer:
    """Stands in for NarrationPlayer in synchronous sequencer tests."""

    def __init__(self):
        self.active = False
        self.closed = False
        self.queued: List[Tuple[str, str]] = []
        self.calls: List[str] = []

    def activate(self):
        self.calls.append("activate")
        self.active = True
        self.closed = False

    def enqueue(self, text: Optional[str], category: str):
        if text:
            self.queued.append((text, category))

    def clear_pending(self):
        self.calls.append("clear_pending")
        self.queued.clear()

    def clear(self):
        self.calls.append("clear")
        self.queued.clear()
        self.active = False

    def close(self):
        self.calls.append("close")
        self.closed = True

    def categories(self) -> List[str]:
        return [category for _, category in self.queued]

    def texts(self, category: Optional[str] = None) -> List[str]:
        return [text for text, c in self.queued if category is None or c == category]

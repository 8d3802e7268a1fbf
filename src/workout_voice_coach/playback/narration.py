"""
Narration Queue/Player

A FIFO of narration items played strictly one at a time: each item is
synthesized, loaded into the audio resource, and the next item is only
taken once the previous one ended or failed. Failures are reported to the
error handler and draining continues with the next item.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, List, Optional

from workout_voice_coach.config import settings
from workout_voice_coach.playback.audio import ENDED, ERROR, AudioResource, PlaybackError
from workout_voice_coach.speech.elevenlabs import synthesize_speech
from workout_voice_coach.utils import preview

logger = logging.getLogger(__name__)

SpeechSynthesizer = Callable[[str, Optional[str], Optional[str]], Awaitable[bytes]]
ErrorHandler = Callable[[Exception], None]


@dataclass(frozen=True)
class NarrationItem:
    text: str
    category: str


@dataclass(frozen=True)
class SpeechConfig:
    """Credentials handed to the synthesizer with every item."""
    api_key: Optional[str] = None
    voice_id: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "SpeechConfig":
        return cls(api_key=settings.ELEVENLABS_API_KEY, voice_id=settings.ELEVENLABS_VOICE_ID)


class NarrationPlayer:
    """Plays queued narration through an injected synthesizer and audio resource."""

    def __init__(
        self,
        audio: AudioResource,
        synthesize: SpeechSynthesizer = synthesize_speech,
        speech_config: Optional[SpeechConfig] = None,
        on_error: Optional[ErrorHandler] = None,
        gap_seconds: Optional[float] = None,
    ):
        self.audio = audio
        self._synthesize = synthesize
        self._config = speech_config or SpeechConfig.from_settings()
        self._on_error = on_error
        self._gap = settings.NARRATION_GAP_SECONDS if gap_seconds is None else gap_seconds

        self._queue: Deque[NarrationItem] = deque()
        self._active = False
        self._playing = False
        self._close_when_idle = False
        self._generation = 0
        self._drain_task: Optional[asyncio.Task] = None
        self._pending_playback: Optional[asyncio.Future] = None

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def pending(self) -> List[NarrationItem]:
        return list(self._queue)

    def activate(self):
        """Allow the queue to drain. Must be called from a running event loop."""
        self._active = True
        self._close_when_idle = False
        self._kick()

    def enqueue(self, text: Optional[str], category: str):
        """Queue narration; empty text is ignored."""
        if not text:
            return
        logger.info(f"Queueing {category} audio: {preview(text)}")
        self._queue.append(NarrationItem(text=text, category=category))
        self._kick()

    def clear_pending(self):
        """Drop queued items but let the item already playing finish."""
        self._queue.clear()

    def close(self):
        """Stop accepting playback once everything already queued has played."""
        if self._playing:
            self._close_when_idle = True
        else:
            self._queue.clear()
            self._active = False

    def clear(self):
        """Drop queued items, release the in-flight item and silence the audio."""
        self._generation += 1
        self._queue.clear()
        self._active = False
        self._playing = False
        self._close_when_idle = False
        self._drain_task = None
        if self._pending_playback is not None and not self._pending_playback.done():
            self._pending_playback.set_result(None)
        self._pending_playback = None
        self.audio.pause()
        self.audio.reset()

    async def wait_until_idle(self):
        """Wait until the current drain (if any) has finished."""
        while self._drain_task is not None and not self._drain_task.done():
            await asyncio.wait({self._drain_task})

    def _is_live(self, generation: int) -> bool:
        return self._active and generation == self._generation

    def _kick(self):
        if not self._active or self._playing or not self._queue:
            return
        self._playing = True
        self._drain_task = asyncio.get_running_loop().create_task(self._drain(self._generation))

    async def _drain(self, generation: int):
        try:
            while self._queue and self._is_live(generation):
                item = self._queue.popleft()
                logger.info(f"Playing {item.category} audio: {preview(item.text)}")
                try:
                    await self._speak(item, generation)
                except Exception as e:
                    if not self._is_live(generation):
                        logger.debug(f"Narration stopped; ignoring {item.category} audio error: {e}")
                        break
                    logger.error(f"Error playing {item.category} audio: {e}")
                    if self._on_error is not None:
                        self._on_error(e)
                if self._gap and self._queue and self._is_live(generation):
                    await asyncio.sleep(self._gap)
        finally:
            if generation == self._generation:
                self._playing = False
                if self._close_when_idle:
                    self._close_when_idle = False
                    self._active = False
                    self._queue.clear()

    async def _speak(self, item: NarrationItem, generation: int):
        audio_data = await self._synthesize(item.text, self._config.voice_id, self._config.api_key)
        if not self._is_live(generation):
            logger.debug(f"Narration stopped during synthesis; dropping {item.category} audio")
            return
        await self._play(audio_data)

    async def _play(self, audio_data: bytes):
        done = asyncio.get_running_loop().create_future()

        def handle_ended(*_):
            if not done.done():
                done.set_result(None)

        def handle_error(*args):
            if not done.done():
                reason = args[0] if args else "unknown error"
                done.set_exception(PlaybackError(f"Audio playback failed: {reason}"))

        self.audio.add_listener(ENDED, handle_ended)
        self.audio.add_listener(ERROR, handle_error)
        self._pending_playback = done
        try:
            self.audio.set_source(audio_data)
            try:
                await self.audio.play()
            except PlaybackError:
                raise
            except Exception as e:
                raise PlaybackError(f"Audio playback failed: {e}") from e
            await done
        finally:
            self.audio.remove_listener(ENDED, handle_ended)
            self.audio.remove_listener(ERROR, handle_error)
            if self._pending_playback is done:
                self._pending_playback = None

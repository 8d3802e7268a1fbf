"""
Audio resource abstraction.

The narration player only needs something that can load synthesized audio,
start it, pause it, rewind it and report when playback ended or failed.
Concrete players (browser bridge, desktop audio, test doubles) subclass
AudioResource.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

ENDED = "ended"
ERROR = "error"

Listener = Callable[..., None]


class PlaybackError(RuntimeError):
    """Raised when audio fails to start or reports an error while playing."""


class AudioResource(ABC):
    """Playable audio with `ended` and `error` notifications"""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {ENDED: [], ERROR: []}

    def add_listener(self, event: str, listener: Listener):
        self._listeners[event].append(listener)

    def remove_listener(self, event: str, listener: Listener):
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def emit(self, event: str, *args):
        """Notify listeners; subclasses call this when playback ends or fails."""
        for listener in list(self._listeners[event]):
            listener(*args)

    @abstractmethod
    def set_source(self, audio: bytes) -> None:
        """Load audio data for the next `play` call"""

    @abstractmethod
    async def play(self) -> None:
        """
        Start playback of the loaded source.

        Returns once playback has started; completion is reported through
        the `ended` notification.

        Raises:
            PlaybackError: If playback could not start
        """

    @abstractmethod
    def pause(self) -> None:
        """Pause playback"""

    @abstractmethod
    def reset(self) -> None:
        """Rewind to the start of the current source"""

# application/ports/audio_engine_port.py
# Port interface for the external transcoding engine that executes filter graphs.
# Domain layer: must not import infrastructure or adapter code.

from abc import ABC, abstractmethod
from typing import Callable, Sequence

ProgressListener = Callable[[float], None]


class IAudioEngine(ABC):
    """
    Abstract base class for an ffmpeg-style engine.

    Resources are addressed by plain file names inside the engine's own
    workspace. Every failing call raises ``remixer.errors.EngineError``.
    """

    @abstractmethod
    def stage_input(self, name: str, data: bytes) -> None:
        """Store *data* under *name* so that ``execute`` can read it."""
        ...

    @abstractmethod
    def execute(self, args: Sequence[str]) -> None:
        """
        Run the engine with a full argument list, e.g.
        ``["-i", "in.wav", "-filter:a", "anull", "-y", "out.mp3"]``.

        Progress listeners receive fractions in [0, 1] while this runs.
        """
        ...

    @abstractmethod
    def read_output(self, name: str) -> bytes:
        """Return the bytes of a resource written by ``execute``."""
        ...

    @abstractmethod
    def delete_resource(self, name: str) -> None:
        """Remove a resource. Deleting a missing resource is a no-op."""
        ...

    @abstractmethod
    def add_progress_listener(self, listener: ProgressListener) -> None:
        ...

    @abstractmethod
    def remove_progress_listener(self, listener: ProgressListener) -> None:
        """Detach *listener* (no-op if it was never attached)."""
        ...

from typing import Dict, List, Optional, Sequence

import pytest

from application.ports.audio_engine_port import IAudioEngine, ProgressListener
from remixer.errors import EngineError


class FakeEngine(IAudioEngine):
    """
    In-memory engine: 'transcodes' by prefixing an ID3 tag to the input.

    fractions: progress values emitted during execute().
    fail_on:   method names that should raise EngineError.
    """

    def __init__(
        self,
        fractions: Sequence[float] = (0.0, 0.25, 0.5, 1.0),
        fail_on: Sequence[str] = (),
        timeout: Optional[float] = None,
    ) -> None:
        self.fractions: List[float] = list(fractions)
        self.fail_on: set = set(fail_on)
        self.timeout = timeout
        self.files: Dict[str, bytes] = {}
        self.calls: List[tuple] = []
        self.deleted: List[str] = []
        self.listeners: List[ProgressListener] = []

    def __enter__(self) -> "FakeEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        pass

    @staticmethod
    def is_available(binary: Optional[str] = None) -> bool:
        return True

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail_on:
            raise EngineError(f"{method} exploded (internal detail)")

    def stage_input(self, name: str, data: bytes) -> None:
        self.calls.append(("stage_input", name))
        self._maybe_fail("stage_input")
        self.files[name] = data

    def execute(self, args: Sequence[str]) -> None:
        self.calls.append(("execute", list(args)))
        for fraction in self.fractions:
            for listener in list(self.listeners):
                listener(fraction)
        self._maybe_fail("execute")
        source = self.files[args[1]]
        self.files[args[-1]] = b"ID3" + source

    def read_output(self, name: str) -> bytes:
        self.calls.append(("read_output", name))
        self._maybe_fail("read_output")
        if name not in self.files:
            raise EngineError(f"Output not found: {name}")
        return self.files[name]

    def delete_resource(self, name: str) -> None:
        self.calls.append(("delete_resource", name))
        self.deleted.append(name)
        self._maybe_fail("delete_resource")
        self.files.pop(name, None)

    def add_progress_listener(self, listener: ProgressListener) -> None:
        self.listeners.append(listener)

    def remove_progress_listener(self, listener: ProgressListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def make_engine():
    """Factory for engines with custom progress or failure behaviour."""
    return FakeEngine

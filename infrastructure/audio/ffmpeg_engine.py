# infrastructure/audio/ffmpeg_engine.py
# Implementation of IAudioEngine that runs the ffmpeg binary in a private workdir.

import logging
import os
import shutil
import subprocess
import tempfile
import threading
from typing import IO, Iterable, List, Optional, Sequence

from pydub.utils import get_encoder_name, mediainfo_json

from application.ports.audio_engine_port import IAudioEngine, ProgressListener
from remixer.errors import EngineError

logger = logging.getLogger("remixer")

# -progress reports both keys in microseconds (out_time_ms is misnamed upstream)
_TIME_KEYS: tuple[str, ...] = ("out_time_us", "out_time_ms")
STDERR_TAIL_CHARS: int = 2000


def parse_progress_lines(lines: Iterable[str], duration_s: float) -> Iterable[float]:
    """
    Turn ``ffmpeg -progress`` key=value lines into fractions in [0, 1].

    Without a known duration only the final ``progress=end`` yields (1.0).
    """
    for raw in lines:
        key, _, value = raw.strip().partition("=")
        if key in _TIME_KEYS and duration_s > 0:
            try:
                elapsed_s: float = int(value) / 1_000_000
            except ValueError:
                continue  # "N/A" before the first frame
            yield max(0.0, min(1.0, elapsed_s / duration_s))
        elif key == "progress" and value == "end":
            yield 1.0


class FfmpegEngine(IAudioEngine):
    """
    Run ffmpeg against files staged in a temporary working directory.

    Args:
        binary:  ffmpeg executable. Defaults to $FFMPEG_BINARY, then to the
                 encoder pydub detects on PATH.
        timeout: Seconds before a single execute() is killed (None = wait).
        workdir: Existing directory to use instead of a fresh temp dir.
    """

    def __init__(
        self,
        binary: Optional[str] = None,
        timeout: Optional[float] = None,
        workdir: Optional[str] = None,
    ) -> None:
        self.binary: str = binary or os.environ.get("FFMPEG_BINARY") or get_encoder_name()
        self.timeout: Optional[float] = timeout
        self._owns_workdir: bool = workdir is None
        self.workdir: str = os.path.realpath(workdir or tempfile.mkdtemp(prefix="remixer_"))
        self._listeners: List[ProgressListener] = []
        self._lock: threading.Lock = threading.Lock()

    # ── Context manager ──────────────────────────────────────────

    def __enter__(self) -> "FfmpegEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Remove the working directory if this engine created it."""
        if self._owns_workdir and os.path.isdir(self.workdir):
            shutil.rmtree(self.workdir, ignore_errors=True)

    @staticmethod
    def is_available(binary: Optional[str] = None) -> bool:
        name: str = binary or os.environ.get("FFMPEG_BINARY") or get_encoder_name()
        return shutil.which(name) is not None

    # ── IAudioEngine ─────────────────────────────────────────────

    def stage_input(self, name: str, data: bytes) -> None:
        path: str = self._resolve(name)
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise EngineError(f"Could not stage {name}: {e}") from e

    def execute(self, args: Sequence[str]) -> None:
        args = list(args)
        duration_s: float = self._probe_duration(args)
        cmd: List[str] = [
            self.binary, "-hide_banner", "-nostdin",
            "-loglevel", "error",
            "-progress", "pipe:1", "-nostats",
            *args,
        ]
        logger.debug("ffmpeg cmd: %s", " ".join(cmd))

        with tempfile.TemporaryFile() as stderr_file:
            try:
                proc = subprocess.Popen(
                    cmd,
                    cwd=self.workdir,
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                    text=True,
                )
            except OSError as e:
                raise EngineError(f"Failed to start ffmpeg ({self.binary}): {e}") from e

            timed_out = threading.Event()

            def _kill() -> None:
                timed_out.set()
                proc.kill()

            timer: Optional[threading.Timer] = None
            if self.timeout:
                timer = threading.Timer(self.timeout, _kill)
                timer.daemon = True
                timer.start()
            try:
                for fraction in parse_progress_lines(proc.stdout, duration_s):
                    self._notify(fraction)
                returncode: int = proc.wait()
            finally:
                if timer:
                    timer.cancel()
                if proc.poll() is None:
                    proc.kill()
                    proc.wait()
                proc.stdout.close()

            if timed_out.is_set():
                raise EngineError(f"ffmpeg timed out after {self.timeout}s")
            if returncode != 0:
                raise EngineError(
                    f"ffmpeg exited with code {returncode}: {self._tail(stderr_file)}"
                )

    def read_output(self, name: str) -> bytes:
        path: str = self._resolve(name)
        if not os.path.isfile(path):
            raise EngineError(f"Output not found: {name}")
        with open(path, "rb") as f:
            return f.read()

    def delete_resource(self, name: str) -> None:
        path: str = self._resolve(name)
        try:
            if os.path.exists(path):
                os.unlink(path)
        except OSError as e:
            raise EngineError(f"Could not delete {name}: {e}") from e

    def add_progress_listener(self, listener: ProgressListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_progress_listener(self, listener: ProgressListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    # ── Private ──────────────────────────────────────────────────

    def _resolve(self, name: str) -> str:
        """Map a resource name to a path inside workdir; reject anything else."""
        if not name or name in (".", "..") or os.path.basename(name) != name:
            raise EngineError(f"Invalid resource name: {name!r}")
        return os.path.join(self.workdir, name)

    def _probe_duration(self, args: List[str]) -> float:
        """Duration of the -i input in seconds, or 0.0 if it cannot be probed."""
        try:
            input_name: str = args[args.index("-i") + 1]
        except (ValueError, IndexError):
            return 0.0
        try:
            info: dict = mediainfo_json(self._resolve(input_name))
            return float(info["format"]["duration"])
        except (OSError, KeyError, TypeError, ValueError, EngineError) as e:
            logger.debug("duration probe failed for %s: %s", input_name, e)
            return 0.0

    def _notify(self, fraction: float) -> None:
        with self._lock:
            listeners: List[ProgressListener] = list(self._listeners)
        for listener in listeners:
            listener(fraction)

    @staticmethod
    def _tail(stream: IO[bytes]) -> str:
        stream.seek(0)
        text: str = stream.read().decode("utf-8", errors="replace").strip()
        return text[-STDERR_TAIL_CHARS:] or "no error output"

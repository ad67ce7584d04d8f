import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional

from application.dto.processing_dto import EffectParameters, OutputArtifact
from application.ports.audio_engine_port import IAudioEngine
from remixer.errors import (
    CleanupError,
    EngineError,
    ExecutionError,
    InputStageError,
    OutputReadError,
    ProcessingError,
)
from remixer.filters import compile_filter_graph
from remixer.naming import build_output_name
from remixer.utils import OUTPUT_EXTENSION, OUTPUT_MIME_TYPE, round_half_up

logger = logging.getLogger("remixer")

ProgressSink = Callable[[int, str], None]

INPUT_BASENAME: str = "input_audio"
OUTPUT_NAME: str = f"output_audio{OUTPUT_EXTENSION}"

# Engine fractions land in [EXEC_FLOOR, EXEC_CEILING]
EXEC_FLOOR: int = 15
EXEC_SPAN: int = 80
EXEC_CEILING: int = 95


class JobState(Enum):
    IDLE = "idle"
    READING_INPUT = "reading_input"
    PREPARING_FILTERS = "preparing_filters"
    EXECUTING = "executing"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    ERROR = "error"


def engine_percent(fraction: float) -> int:
    """Map an engine progress fraction onto the 15–95% execution window."""
    fraction = max(0.0, min(1.0, float(fraction)))
    return min(EXEC_FLOOR + int(round_half_up(fraction * EXEC_SPAN)), EXEC_CEILING)


def staged_input_name(original_name: str) -> str:
    """input_audio + the original's extension, e.g. 'Song.WAV' → 'input_audio.wav'."""
    ext: str = os.path.splitext(os.path.basename(original_name))[1].lower()
    return f"{INPUT_BASENAME}{ext}"


@dataclass
class ProcessingJob:
    """Transient state for one run. Lives only inside ProcessingOrchestrator.run."""
    input_bytes: bytes
    original_name: str
    params: EffectParameters
    on_progress: Optional[ProgressSink] = None
    state: JobState = JobState.IDLE
    percent: int = 0
    input_name: str = ""
    output_name: str = OUTPUT_NAME

    def advance(self, state: JobState, percent: int, status: str) -> None:
        self.state = state
        self.report(percent, status)

    def report(self, percent: int, status: str) -> None:
        # The sink never sees progress go backwards
        self.percent = max(self.percent, int(percent))
        if self.on_progress:
            self.on_progress(self.percent, status)


class ProcessingOrchestrator:
    """
    Runs one tempo/pitch/reverb job against an injected engine.

    The engine is borrowed, not owned: callers must not start a second job on
    the same engine while one is in flight.
    """

    def __init__(self, engine: IAudioEngine) -> None:
        self.engine: IAudioEngine = engine

    def run(
        self,
        input_bytes: bytes,
        original_name: str,
        params: EffectParameters,
        on_progress: Optional[ProgressSink] = None,
    ) -> OutputArtifact:
        """
        Full pipeline: stage input → compile graph → execute → read output.

        Args:
            input_bytes:   Raw bytes of the uploaded audio file.
            original_name: File name the user supplied (used for the extension
                           of the staged input and for the output name).
            params:        Validated effect parameters.
            on_progress:   Optional sink called with (percent, status).

        Returns:
            OutputArtifact holding MP3 bytes and the generated file name.

        Raises:
            ProcessingError: on any failure; the cause is only logged.
        """
        job = ProcessingJob(
            input_bytes=input_bytes,
            original_name=original_name,
            params=params,
            on_progress=on_progress,
            input_name=staged_input_name(original_name),
        )
        start_time: float = time.time()

        try:
            with self._staged_resources(job):
                artifact: OutputArtifact = self._process(job)
            job.advance(JobState.COMPLETE, 100, "Complete!")
        except Exception as exc:
            failed_in: JobState = job.state
            job.state = JobState.ERROR
            logger.error(
                "processing failed stage=%s file=%s: %s",
                failed_in.value, job.original_name, exc, exc_info=True,
            )
            raise ProcessingError() from None

        logger.info(
            "processed file=%s -> %s (%d bytes) in %.1fs",
            job.original_name, artifact.file_name, artifact.size_bytes,
            time.time() - start_time,
        )
        return artifact

    # ── Stages ───────────────────────────────────────────────────

    def _process(self, job: ProcessingJob) -> OutputArtifact:
        # [1] Stage input
        job.advance(JobState.READING_INPUT, 5, "Reading audio file...")
        try:
            self.engine.stage_input(job.input_name, job.input_bytes)
        except EngineError as exc:
            raise InputStageError(str(exc)) from exc

        # [2] Compile filters
        job.advance(JobState.PREPARING_FILTERS, 15, "Preparing audio filters...")
        graph: str = compile_filter_graph(job.params).serialize()
        logger.debug("filter graph for %s: %s", job.original_name, graph)

        # [3] Execute
        job.state = JobState.EXECUTING
        with self._progress_subscription(job):
            job.report(20, "Applying effects...")
            try:
                self.engine.execute([
                    "-i", job.input_name,
                    "-filter:a", graph,
                    "-y", job.output_name,
                ])
            except EngineError as exc:
                raise ExecutionError(str(exc)) from exc

        # [4] Read back
        job.advance(JobState.FINALIZING, 95, "Finalizing...")
        try:
            data: bytes = self.engine.read_output(job.output_name)
        except EngineError as exc:
            raise OutputReadError(str(exc)) from exc

        return OutputArtifact(
            data=data,
            file_name=build_output_name(job.original_name, job.params),
            mime_type=OUTPUT_MIME_TYPE,
        )

    # ── Scoped resources ─────────────────────────────────────────

    @contextmanager
    def _progress_subscription(self, job: ProcessingJob) -> Iterator[None]:
        """Attach a progress listener for the duration of one execute call."""

        def on_fraction(fraction: float) -> None:
            job.report(engine_percent(fraction), "Processing audio...")

        self.engine.add_progress_listener(on_fraction)
        try:
            yield
        finally:
            self.engine.remove_progress_listener(on_fraction)

    @contextmanager
    def _staged_resources(self, job: ProcessingJob) -> Iterator[None]:
        """Release the staged input and output on every exit path, once."""
        try:
            yield
        finally:
            self._cleanup(job)

    def _cleanup(self, job: ProcessingJob) -> None:
        for name in (job.input_name, job.output_name):
            try:
                self.engine.delete_resource(name)
            except EngineError as exc:
                # Never mask the job's own outcome
                logger.warning("%s", CleanupError(f"could not delete {name}: {exc}"))

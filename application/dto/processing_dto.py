# application/dto/processing_dto.py
# Data Transfer Objects for a single tempo/pitch/reverb processing job.

from dataclasses import dataclass

from remixer.utils import (
    OUTPUT_MIME_TYPE,
    PITCH_RANGE,
    REVERB_RANGE,
    TEMPO_RANGE,
    validate_int_param,
    validate_param_range,
)


@dataclass(frozen=True)
class EffectParameters:
    """User-facing effect settings for one job. Immutable once built."""
    tempo: float = 1.0
    pitch_semitones: int = 0
    reverb_percent: int = 0

    def __post_init__(self) -> None:
        validate_param_range(self.tempo, "tempo", *TEMPO_RANGE)
        validate_int_param(self.pitch_semitones, "pitch_semitones", *PITCH_RANGE)
        validate_int_param(self.reverb_percent, "reverb_percent", *REVERB_RANGE)

    def as_dict(self) -> dict:
        return {
            "tempo": self.tempo,
            "pitch": self.pitch_semitones,
            "reverb": self.reverb_percent,
        }


@dataclass(frozen=True)
class OutputArtifact:
    """Processed audio handed back to the caller."""
    data: bytes
    file_name: str
    mime_type: str = OUTPUT_MIME_TYPE

    @property
    def size_bytes(self) -> int:
        return len(self.data)


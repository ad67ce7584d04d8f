"""
Compile effect parameters into an ffmpeg ``-filter:a`` graph.

Each stage is a small frozen dataclass that knows its own wire token, so the
filter grammar lives in exactly one place per stage:

    asetrate=<int>  aresample=<int>  atempo=<float>
    aecho=<in>:<out>:<d1>|<d2>|<d3>:<k1>|<k2>|<k3>  anull
"""

from dataclasses import dataclass
from typing import Tuple, Union

from application.dto.processing_dto import EffectParameters
from remixer.utils import (
    REVERB_RANGE,
    STANDARD_SAMPLE_RATE,
    format_number,
    round_half_up,
    validate_int_param,
)

# Sample-rate filters: "asetrate" reinterprets, "aresample" converts
SET_RATE: str = "asetrate"
RESAMPLE: str = "aresample"


@dataclass(frozen=True)
class Resample:
    target_rate_hz: int
    kind: str = RESAMPLE

    def to_token(self) -> str:
        return f"{self.kind}={self.target_rate_hz}"


@dataclass(frozen=True)
class Tempo:
    factor: float

    def to_token(self) -> str:
        return f"atempo={format_number(self.factor)}"


@dataclass(frozen=True)
class Echo:
    in_gain: float
    out_gain: float
    delays_ms: Tuple[int, int, int]
    decays: Tuple[str, str, str]   # already fixed to two decimals

    def to_token(self) -> str:
        delays: str = "|".join(str(d) for d in self.delays_ms)
        decays: str = "|".join(self.decays)
        return (
            f"aecho={format_number(self.in_gain)}:{format_number(self.out_gain)}"
            f":{delays}:{decays}"
        )


@dataclass(frozen=True)
class Passthrough:
    def to_token(self) -> str:
        return "anull"


FilterStage = Union[Resample, Tempo, Echo, Passthrough]


@dataclass(frozen=True)
class FilterGraph:
    """Ordered, immutable sequence of filter stages."""
    stages: Tuple[FilterStage, ...]

    def serialize(self) -> str:
        return ",".join(stage.to_token() for stage in self.stages)

    def __str__(self) -> str:
        return self.serialize()

    def __len__(self) -> int:
        return len(self.stages)


def reverb_curve(reverb_percent: int) -> Echo:
    """
    Map a reverb amount (1–100) onto aecho parameters.

    Everything is a straight line in intensity = percent / 100:
      out gain  0.70 → 0.88
      base tap  40ms → 70ms, with taps at 1x, 1.5x and 2.2x
      decays    0.20→0.55, 0.15→0.40, 0.10→0.30

    Delays round half up. Decays are the float formatted to two places, so
    reverb 30 gives a first decay of 0.30 rather than 0.31.
    """
    validate_int_param(reverb_percent, "reverb_percent", 1, REVERB_RANGE[1])
    intensity: float = reverb_percent / 100

    base_ms: float = 40 + 30 * intensity
    delays: Tuple[int, int, int] = (
        int(round_half_up(base_ms)),
        int(round_half_up(base_ms * 1.5)),
        int(round_half_up(base_ms * 2.2)),
    )
    decays: Tuple[str, str, str] = (
        f"{0.20 + 0.35 * intensity:.2f}",
        f"{0.15 + 0.25 * intensity:.2f}",
        f"{0.10 + 0.20 * intensity:.2f}",
    )

    return Echo(
        in_gain=0.8,
        out_gain=round(0.70 + 0.18 * intensity, 4),
        delays_ms=delays,
        decays=decays,
    )


def compile_filter_graph(params: EffectParameters) -> FilterGraph:
    """
    Build the filter graph for *params*: pitch, then tempo, then reverb.

    Pitch is shifted by retagging the stream at 44.1 kHz * 2^(n/12) and
    resampling back to 44.1 kHz, which moves pitch and tempo together; any
    tempo change is applied on top of that.
    """
    stages: list = []

    if params.pitch_semitones != 0:
        multiplier: float = 2 ** (params.pitch_semitones / 12)
        shifted_rate: int = int(round_half_up(STANDARD_SAMPLE_RATE * multiplier))
        stages.append(Resample(shifted_rate, kind=SET_RATE))
        stages.append(Resample(STANDARD_SAMPLE_RATE, kind=RESAMPLE))

    # atempo accepts 0.5–2.0 natively, same as TEMPO_RANGE, so one stage is enough
    if params.tempo != 1.0:
        stages.append(Tempo(params.tempo))

    if params.reverb_percent > 0:
        stages.append(reverb_curve(params.reverb_percent))

    if not stages:
        stages.append(Passthrough())

    return FilterGraph(tuple(stages))

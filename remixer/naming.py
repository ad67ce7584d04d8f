import os

from application.dto.processing_dto import EffectParameters
from remixer.utils import OUTPUT_EXTENSION


def build_suffix(params: EffectParameters) -> str:
    """
    Describe the applied effects for use in a file name.

    Example: tempo=0.8, pitch=-2, reverb=50  →  _slowed_pitch_down_reverb
    Example: tempo=1.0, pitch=0,  reverb=0   →  _processed
    """
    parts: list[str] = []

    if params.tempo < 1.0:
        parts.append("slowed")
    elif params.tempo > 1.0:
        parts.append("sped")

    if params.pitch_semitones > 0:
        parts.append("pitch_up")
    elif params.pitch_semitones < 0:
        parts.append("pitch_down")

    if params.reverb_percent > 0:
        parts.append("reverb")

    if not parts:
        return "_processed"
    return "_" + "_".join(parts)


def build_output_name(original_name: str, params: EffectParameters) -> str:
    """
    Derive the download name from the uploaded file's name.

    Example: song.wav, tempo=0.8, reverb=50  →  song_slowed_reverb.mp3
    Example: mix.v2.flac                     →  mix.v2_processed.mp3
    """
    base: str = os.path.basename(original_name)
    stem: str
    stem, _ = os.path.splitext(base)
    return f"{stem}{build_suffix(params)}{OUTPUT_EXTENSION}"

import os
from decimal import Decimal, ROUND_HALF_UP

# Supported formats
SUPPORTED_INPUT_FORMATS: set[str] = {".mp3", ".wav", ".flac", ".ogg", ".aac", ".m4a"}

# Output is always normalized to a single container
OUTPUT_EXTENSION: str = ".mp3"
OUTPUT_MIME_TYPE: str = "audio/mp3"

# Rate every pitch-shifted graph is resampled back to
STANDARD_SAMPLE_RATE: int = 44100

# Accepted parameter ranges (inclusive)
TEMPO_RANGE: tuple[float, float] = (0.5, 2.0)
PITCH_RANGE: tuple[int, int] = (-12, 12)
REVERB_RANGE: tuple[int, int] = (0, 100)

# Default parameters (classic "slowed + reverb")
DEFAULT_PARAMS: dict[str, float] = {
    "tempo": 0.8,
    "pitch": 0,
    "reverb": 50,
}

GENERIC_ERROR_MESSAGE: str = "Failed to process audio. Please try a different file."


# Validation helpers
def validate_input_file(path: str) -> None:
    """Raise FileNotFoundError / ValueError if the input path is invalid."""
    if not os.path.exists(path):
        raise FileNotFoundError(
            f"Input file not found: '{path}'.\n" f"    → Check the path and try again."
        )
    if not os.path.isfile(path):
        raise ValueError(
            f"Input path is not a file: '{path}'.\n"
            f"    → Provide a path to an audio file, not a directory."
        )

    ext: str = os.path.splitext(path)[1].lower()
    if ext not in SUPPORTED_INPUT_FORMATS:
        raise ValueError(
            f"Unsupported input format: '{ext}'.\n"
            f"    Supported: {', '.join(sorted(SUPPORTED_INPUT_FORMATS))}\n"
            f"    → Example: python main.py song.wav --tempo 0.8 --reverb 50"
        )


def validate_output_dir(path: str) -> None:
    """Raise FileNotFoundError if the output directory does not exist."""
    if not os.path.isdir(path):
        raise FileNotFoundError(
            f"Output directory does not exist: '{path}'.\n"
            f"    → Create the directory first, or choose an existing path."
        )


def validate_param_range(
    value: float, name: str, min_val: float, max_val: float
) -> None:
    """Raise ValueError if a float parameter is out of its valid range."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(
            f"Parameter '{name}' must be a number. Got: {value!r}.\n"
            f"    → Pass a value between {min_val} and {max_val}."
        )
    if not (min_val <= value <= max_val):
        raise ValueError(
            f"Parameter '{name}' must be between {min_val} and {max_val}. Got: {value}.\n"
            f"    → Adjust the value to be within the valid range."
        )


def validate_int_param(value: int, name: str, min_val: int, max_val: int) -> None:
    """Like validate_param_range, but whole numbers only."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(
            f"Parameter '{name}' must be a whole number. Got: {value!r}.\n"
            f"    → Use an integer between {min_val} and {max_val}."
        )
    validate_param_range(value, name, min_val, max_val)


# Numeric helpers

def round_half_up(value: float, places: int = 0) -> Decimal:
    """
    Round like a calculator: 82.5 → 83, 0.375 → 0.38.

    The float is first cut to 9 decimals so binary noise
    (121.00000000000001) cannot push it across a rounding boundary.
    """
    exact: Decimal = Decimal(repr(round(value, 9)))
    return exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_number(value: float) -> str:
    """Shortest decimal form of *value*, without a trailing '.0' (2.0 → '2')."""
    text: str = repr(float(value))
    if text.endswith(".0"):
        return text[:-2]
    return text

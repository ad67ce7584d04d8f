# remixer/printer.py
# Centralized terminal output for the remixer CLI.
# Results go to stdout, errors always to stderr.

import os
import sys
from typing import Optional

from application.dto.processing_dto import EffectParameters


class OutputPrinter:
    """
    Terminal formatter for the CLI.

    Every message is a symbol plus a one-line headline, optionally followed by
    an indented detail block or an arrow-prefixed hint. Colour is decoration
    only and is dropped with ``no_color`` or the NO_COLOR env variable.
    """

    SYMBOLS : dict[str, str] = {
        "success" : "✅",
        "error"   : "❌",
        "warning" : "⚠️ ",
        "info"    : "ℹ️ ",
        "hint"    : "→",
    }

    COLORS : dict[str, str] = {
        "green"  : "32",
        "red"    : "31",
        "yellow" : "33",
        "cyan"   : "36",
        "dim"    : "90",
    }

    COL_WIDTH : int = 10  # detail keys are padded to this width

    def __init__(self, quiet : bool = False, no_color : bool = False) -> None:
        self.quiet    : bool = quiet
        self.no_color : bool = no_color or bool(os.environ.get("NO_COLOR", ""))

    # ── Internal ─────────────────────────────────────────────────

    def _colorize(self, text : str, code : str) -> str:
        if self.no_color:
            return text
        return f"\033[{code}m{text}\033[0m"

    def _details(self, details : dict[str, str]) -> None:
        for key, value in details.items():
            dim_key : str = self._colorize(f"{key:<{self.COL_WIDTH}}", self.COLORS["dim"])
            print(f"    {dim_key}: {value}")

    def _hint(self, hint : str, stream=None) -> None:
        h : str = self._colorize(f"{self.SYMBOLS['hint']} {hint}", self.COLORS["cyan"])
        print(f"    {h}", file=stream or sys.stdout)

    # ── Messages ─────────────────────────────────────────────────

    def success(self, title : str, details : Optional[dict[str, str]] = None) -> None:
        if self.quiet:
            return
        symbol : str = self._colorize(self.SYMBOLS["success"], self.COLORS["green"])
        label  : str = self._colorize(title, self.COLORS["green"])
        print(f"\n{symbol}  {label}")
        if details:
            self._details(details)

    def error(self, message : str, hint : Optional[str] = None) -> None:
        """Errors are printed even in quiet mode."""
        symbol : str = self._colorize(self.SYMBOLS["error"], self.COLORS["red"])
        msg    : str = self._colorize(message, self.COLORS["red"])
        print(f"\n{symbol}  {msg}", file=sys.stderr)
        if hint:
            self._hint(hint, stream=sys.stderr)

    def warning(self, message : str, hint : Optional[str] = None) -> None:
        if self.quiet:
            return
        symbol : str = self._colorize(self.SYMBOLS["warning"], self.COLORS["yellow"])
        msg    : str = self._colorize(message, self.COLORS["yellow"])
        print(f"\n{symbol} {msg}")
        if hint:
            self._hint(hint)

    def info(self, message : str) -> None:
        if self.quiet:
            return
        symbol : str = self._colorize(self.SYMBOLS["info"], self.COLORS["cyan"])
        print(f"{symbol} {message}")

    def effects(self, params : EffectParameters) -> None:
        """Summarise the settings a job is about to run with."""
        if self.quiet:
            return
        pitch : str = f"{params.pitch_semitones:+d} st" if params.pitch_semitones else "0 st"
        self.info("Effects")
        self._details({
            "Tempo"  : f"{params.tempo:.2f}x",
            "Pitch"  : pitch,
            "Reverb" : f"{params.reverb_percent}%",
        })

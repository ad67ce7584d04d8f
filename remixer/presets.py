# remixer/presets.py
# Named one-click settings, in the order they are offered to users.

from dataclasses import dataclass

from application.dto.processing_dto import EffectParameters


@dataclass(frozen=True)
class Preset:
    preset_id: str
    name: str
    params: EffectParameters

    def as_dict(self) -> dict:
        return {"id": self.preset_id, "name": self.name, **self.params.as_dict()}


PRESETS: tuple[Preset, ...] = (
    Preset("slowed-light",    "Slowed (Light)",            EffectParameters(0.85, -2, 30)),
    Preset("slowed-heavy",    "Slowed (Heavy Reverb)",     EffectParameters(0.75, -3, 70)),
    Preset("slowed-classic",  "Classic Slowed + Reverb",   EffectParameters(0.8,   0, 50)),
    Preset("nightcore-light", "Sped Up (Light)",           EffectParameters(1.2,   2, 15)),
    Preset("nightcore-heavy", "Nightcore",                 EffectParameters(1.35,  4, 25)),
    Preset("reset",           "Reset to Default",          EffectParameters(1.0,   0,  0)),
)

_BY_ID: dict[str, Preset] = {p.preset_id: p for p in PRESETS}


def get_preset(preset_id: str) -> Preset:
    """Return the preset with *preset_id*; KeyError names the valid ids."""
    try:
        return _BY_ID[preset_id]
    except KeyError:
        raise KeyError(
            f"Unknown preset: '{preset_id}'. Available: {', '.join(_BY_ID)}"
        ) from None


def list_presets() -> list[Preset]:
    return list(PRESETS)

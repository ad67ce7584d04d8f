import pytest

from application.dto.processing_dto import EffectParameters
from remixer.filters import (
    Echo,
    FilterGraph,
    Passthrough,
    Resample,
    Tempo,
    compile_filter_graph,
    reverb_curve,
)
from remixer.utils import format_number, round_half_up


def graph_for(tempo: float = 1.0, pitch: int = 0, reverb: int = 0) -> str:
    return compile_filter_graph(EffectParameters(tempo, pitch, reverb)).serialize()


class TestReverbCurve:
    """Tests for the reverb amount → aecho parameter mapping."""

    def test_full_reverb_values(self) -> None:
        echo: Echo = reverb_curve(100)
        assert echo.in_gain == 0.8
        assert echo.out_gain == pytest.approx(0.88)
        assert echo.delays_ms == (70, 105, 154)
        assert echo.decays == ("0.55", "0.40", "0.30")

    def test_half_reverb_rounds_delays_half_up(self) -> None:
        echo: Echo = reverb_curve(50)
        # 55 * 1.5 = 82.5 must round up, not to even
        assert echo.delays_ms == (55, 83, 121)
        assert echo.decays == ("0.38", "0.28", "0.20")
        assert echo.out_gain == pytest.approx(0.79)

    def test_decays_use_float_formatting_not_half_up(self) -> None:
        assert reverb_curve(30).decays == ("0.30", "0.22", "0.16")
        assert reverb_curve(70).decays == ("0.44", "0.32", "0.24")

    def test_light_reverb_decays(self) -> None:
        assert reverb_curve(10).decays[0] == "0.17"

    def test_slowed_heavy_preset_graph(self) -> None:
        assert graph_for(0.75, -3, 70).endswith(":0.44|0.32|0.24")

    def test_minimum_reverb(self) -> None:
        echo: Echo = reverb_curve(1)
        assert echo.delays_ms == (40, 60, 89)
        assert echo.decays == ("0.20", "0.15", "0.10")

    def test_decays_always_two_decimals(self) -> None:
        for percent in range(1, 101):
            for decay in reverb_curve(percent).decays:
                assert len(decay.split(".")[1]) == 2

    def test_delays_grow_with_intensity(self) -> None:
        low: Echo = reverb_curve(10)
        high: Echo = reverb_curve(90)
        assert all(h >= l for h, l in zip(high.delays_ms, low.delays_ms))

    def test_zero_reverb_rejected(self) -> None:
        with pytest.raises(ValueError, match="reverb_percent"):
            reverb_curve(0)

    def test_token_format(self) -> None:
        assert reverb_curve(100).to_token() == "aecho=0.8:0.88:70|105|154:0.55|0.40|0.30"


class TestCompileFilterGraph:
    """Tests for stage selection, ordering and serialization."""

    def test_no_effects_is_anull(self) -> None:
        graph: FilterGraph = compile_filter_graph(EffectParameters())
        assert graph.stages == (Passthrough(),)
        assert graph.serialize() == "anull"

    def test_tempo_only(self) -> None:
        assert graph_for(tempo=0.8) == "atempo=0.8"

    def test_tempo_whole_number_has_no_trailing_zero(self) -> None:
        assert graph_for(tempo=2.0) == "atempo=2"

    def test_tempo_range_edges_single_stage(self) -> None:
        for tempo in (0.5, 0.75, 1.35, 2.0):
            graph: FilterGraph = compile_filter_graph(EffectParameters(tempo=tempo))
            assert graph.stages == (Tempo(tempo),)

    def test_pitch_octave_down(self) -> None:
        assert graph_for(pitch=-12) == "asetrate=22050,aresample=44100"

    def test_pitch_octave_up(self) -> None:
        assert graph_for(pitch=12) == "asetrate=88200,aresample=44100"

    @pytest.mark.parametrize("pitch", range(-12, 13))
    def test_pitch_target_rate(self, pitch: int) -> None:
        graph: FilterGraph = compile_filter_graph(EffectParameters(pitch_semitones=pitch))
        if pitch == 0:
            assert not any(isinstance(s, Resample) for s in graph.stages)
            return
        expected_rate = int(round_half_up(44100 * 2 ** (pitch / 12)))
        assert graph.stages == (
            Resample(expected_rate, kind="asetrate"),
            Resample(44100, kind="aresample"),
        )

    def test_two_semitones_down(self) -> None:
        assert graph_for(pitch=-2) == "asetrate=39289,aresample=44100"

    def test_reverb_only(self) -> None:
        assert graph_for(reverb=100) == "aecho=0.8:0.88:70|105|154:0.55|0.40|0.30"

    def test_stage_order_pitch_tempo_reverb(self) -> None:
        assert graph_for(0.8, -2, 50) == (
            "asetrate=39289,aresample=44100,"
            "atempo=0.8,"
            "aecho=0.8:0.79:55|83|121:0.38|0.28|0.20"
        )

    def test_nightcore_preset_graph(self) -> None:
        graph: FilterGraph = compile_filter_graph(EffectParameters(1.35, 4, 25))
        kinds = [type(s) for s in graph.stages]
        assert kinds == [Resample, Resample, Tempo, Echo]

    def test_compiling_twice_is_identical(self) -> None:
        params = EffectParameters(0.85, -3, 70)
        assert compile_filter_graph(params).serialize() == compile_filter_graph(params).serialize()

    def test_str_matches_serialize(self) -> None:
        graph: FilterGraph = compile_filter_graph(EffectParameters(1.2, 2, 15))
        assert str(graph) == graph.serialize()
        assert len(graph) == 4


class TestEffectParameters:
    """Tests for parameter validation."""

    def test_defaults_are_neutral(self) -> None:
        params = EffectParameters()
        assert (params.tempo, params.pitch_semitones, params.reverb_percent) == (1.0, 0, 0)

    def test_tempo_out_of_range_raises(self) -> None:
        with pytest.raises(ValueError, match="tempo"):
            EffectParameters(tempo=2.5)

    def test_pitch_must_be_integer(self) -> None:
        with pytest.raises(ValueError, match="whole number"):
            EffectParameters(pitch_semitones=1.5)

    def test_reverb_out_of_range_raises(self) -> None:
        with pytest.raises(ValueError, match="must be between 0 and 100"):
            EffectParameters(reverb_percent=101)

    def test_bool_is_not_a_number(self) -> None:
        with pytest.raises(ValueError):
            EffectParameters(tempo=True)

    def test_range_edges_accepted(self) -> None:
        EffectParameters(0.5, -12, 0)
        EffectParameters(2.0, 12, 100)

    def test_immutable(self) -> None:
        params = EffectParameters()
        with pytest.raises(AttributeError):
            params.tempo = 1.5


class TestNumberHelpers:
    """Tests for rounding and float formatting."""

    def test_round_half_up_integer(self) -> None:
        assert round_half_up(82.5) == 83
        assert round_half_up(121.00000000000001) == 121

    def test_round_half_up_places(self) -> None:
        assert str(round_half_up(0.375, 2)) == "0.38"
        assert str(round_half_up(0.2, 2)) == "0.20"

    def test_format_number(self) -> None:
        assert format_number(0.8) == "0.8"
        assert format_number(2.0) == "2"
        assert format_number(1.35) == "1.35"

"""
Tests for simulation/format_utils.py — SI prefix parsing and label values.
"""

import pytest
from simulation.format_utils import parse_label_value, parse_value

# ── parse_value ──────────────────────────────────────────────────────


class TestParseValue:
    @pytest.mark.parametrize(
        "input_str, expected",
        [
            ("10k", 10_000.0),
            ("10K", 10_000.0),
            ("1M", 1_000_000.0),
            ("4.7M", 4_700_000.0),
            ("100n", 100e-9),
            ("1u", 1e-6),
            ("1µ", 1e-6),
            ("10m", 10e-3),
            ("2.2p", 2.2e-12),
            ("1f", 1e-15),
            ("1G", 1e9),
            ("1T", 1e12),
        ],
    )
    def test_si_suffixes(self, input_str, expected):
        assert parse_value(input_str) == pytest.approx(expected)

    def test_meg_suffix(self):
        assert parse_value("4.7MEG") == pytest.approx(4_700_000.0)

    def test_bare_number(self):
        assert parse_value("100") == 100.0

    def test_negative_value(self):
        assert parse_value("-5") == -5.0

    def test_scientific_notation(self):
        assert parse_value("1e3") == pytest.approx(1000.0)

    def test_number_with_unit_suffix(self):
        # "10kOhm": 'k' is the prefix, rest is unit
        assert parse_value("10kOhm") == pytest.approx(10_000.0)

    def test_unit_without_prefix(self):
        assert parse_value("9V") == 9.0

    def test_invalid_string_raises(self):
        with pytest.raises(ValueError):
            parse_value("abc")

    def test_float_passthrough(self):
        assert parse_value(42.0) == 42.0


# ── parse_label_value ────────────────────────────────────────────────


class TestParseLabelValue:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("9V", 9.0),
            ("4.7kΩ", 4700.0),
            ("R1 = 220 Ω", 220.0),
            ("Lamp 12V", 12.0),
            ("1.5 MEG", 1_500_000.0),
            ("-5V", -5.0),
            ("  100   Ω ", 100.0),
        ],
    )
    def test_reads_first_standalone_number(self, label, expected):
        assert parse_label_value(label) == pytest.approx(expected)

    @pytest.mark.parametrize("label", [None, "", "Lamp", "R1", "LED2"])
    def test_no_number(self, label):
        assert parse_label_value(label) is None

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("10mA", 0.01),
            ("2.2µF", 2.2e-6),
            ("1kOhm", 1000.0),
            ("4.7k", 4700.0),
        ],
    )
    def test_prefix_before_unit(self, label, expected):
        assert parse_label_value(label) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("100 Tungsten", 100.0),
            ("5 Meters", 5.0),
            ("60 Gauge", 60.0),
            ("3 mini lamps", 3.0),
        ],
    )
    def test_word_after_number_is_not_a_prefix(self, label, expected):
        assert parse_label_value(label) == pytest.approx(expected)

"""Tests for the command-line interface (app/cli.py)."""

import argparse
import json

import pytest
from cli import build_parser, cmd_check, cmd_validate, main, parse_pair, try_load_circuit
from models.circuit import CircuitModel


@pytest.fixture
def loop_file(tmp_path, square_model):
    """Closed square loop saved to disk."""
    filepath = tmp_path / "loop.json"
    filepath.write_text(json.dumps(square_model.to_dict()))
    return str(filepath)


@pytest.fixture
def open_file(tmp_path, square_model):
    """Square loop with one side missing."""
    square_model.wires.pop()
    filepath = tmp_path / "open.json"
    filepath.write_text(json.dumps(square_model.to_dict()))
    return str(filepath)


@pytest.fixture
def schematic_file(tmp_path, series_schematic):
    filepath = tmp_path / "schematic.json"
    filepath.write_text(json.dumps({"elements": [e.to_dict() for e in series_schematic]}))
    return str(filepath)


class TestTryLoadCircuit:
    def test_success(self, loop_file):
        model, error = try_load_circuit(loop_file)
        assert isinstance(model, CircuitModel)
        assert error == ""
        assert len(model.wires) == 4

    def test_nonexistent(self):
        model, error = try_load_circuit("/nonexistent/file.json")
        assert model is None
        assert "not found" in error

    def test_invalid_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        model, error = try_load_circuit(str(bad))
        assert model is None
        assert "invalid JSON" in error

    def test_invalid_structure(self, tmp_path):
        bad = tmp_path / "bad_struct.json"
        bad.write_text('{"foo": "bar"}')
        model, error = try_load_circuit(str(bad))
        assert model is None
        assert "invalid circuit file" in error


class TestParsePair:
    def test_valid(self):
        pair = parse_pair("pos:neg")
        assert (pair.positive, pair.negative) == ("pos", "neg")

    @pytest.mark.parametrize("text", ["posneg", ":neg", "pos:"])
    def test_invalid(self, text):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_pair(text)


class TestCheckCommand:
    def test_closed_loop(self, loop_file, capsys):
        args = build_parser().parse_args(["check", loop_file, "--pair", "pos:neg"])
        assert cmd_check(args) == 0
        assert "Circuit is complete and closed" in capsys.readouterr().out

    def test_open_loop(self, open_file, capsys):
        code = main(["check", open_file, "--pair", "pos:neg"])
        assert code == 1
        assert "No closed loop detected" in capsys.readouterr().out

    def test_json_output(self, loop_file, capsys):
        code = main(["check", loop_file, "--json"])
        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["isClosed"] is True
        assert data["componentCount"] == 2
        assert data["openEndpoints"] == []

    def test_settings_file(self, loop_file, tmp_path, capsys):
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"connection_tolerance": 0.5}))
        assert main(["check", loop_file, "--settings", str(settings)]) == 0

    def test_invalid_settings(self, loop_file, tmp_path, capsys):
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"snap_radius": -1}))
        assert main(["check", loop_file, "--settings", str(settings)]) == 1
        assert "invalid settings" in capsys.readouterr().err

    def test_missing_file(self, capsys):
        assert main(["check", "/nonexistent/file.json"]) == 1
        assert "file not found" in capsys.readouterr().err


class TestMetricsCommand:
    def test_solves_from_two_values(self, capsys):
        assert main(["metrics", "--voltage", "12", "--resistance", "6"]) == 0
        out = capsys.readouterr().out
        assert "2.000 A" in out
        assert "I = E / R" in out

    def test_json(self, capsys):
        assert main(["metrics", "-P", "36", "-R", "9", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["current"] == pytest.approx(2)
        assert data["voltage"] == pytest.approx(18)

    def test_insufficient(self, capsys):
        assert main(["metrics", "-E", "5"]) == 1
        assert "Unable to resolve" in capsys.readouterr().err

    def test_si_prefixed_values(self, capsys):
        assert main(["metrics", "-E", "9", "-R", "4.5k", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["current"] == pytest.approx(2e-3)

    def test_unparseable_value(self, capsys):
        with pytest.raises(SystemExit):
            main(["metrics", "-E", "nine", "-R", "9"])
        assert "Invalid number format" in capsys.readouterr().err


class TestACCommand:
    def test_resistive(self, capsys):
        assert main(["ac", "--voltage", "120", "--resistance", "20", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["frequency"] == "60.0 Hz"
        assert data["current"] == "6.000 A"

    def test_invalid_input(self, capsys):
        assert main(["ac", "--voltage", "-1", "--frequency", "0"]) == 1
        err = capsys.readouterr().err
        assert "Voltage must be non-negative" in err
        assert "Frequency must be positive" in err

    def test_reactive_values_with_prefixes(self, capsys):
        assert main(["ac", "--voltage", "120", "--resistance", "20", "--inductance", "10m",
                     "--capacitance", "100u", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        # 3.77 Ω inductive against 26.5 Ω capacitive
        assert data["characteristic"] == "leading"

    def test_voltage_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["ac"])


class TestValidateCommand:
    def test_complete_schematic(self, schematic_file, capsys):
        args = build_parser().parse_args(["validate", schematic_file])
        assert cmd_validate(args) == 0
        out = capsys.readouterr().out
        assert "DC analysis: solved" in out
        assert "Circuit is complete and ready for simulation" in out

    def test_shorted_schematic(self, tmp_path, shorted_schematic, capsys):
        filepath = tmp_path / "short.json"
        filepath.write_text(json.dumps([e.to_dict() for e in shorted_schematic]))
        assert main(["validate", str(filepath)]) == 1
        out = capsys.readouterr().out
        assert "invalid_ideal_short" in out
        assert "Short Circuit Detected" in out

    def test_bad_element(self, tmp_path, capsys):
        filepath = tmp_path / "bad.json"
        filepath.write_text(json.dumps({"elements": [{"id": "X", "kind": "flux-capacitor"}]}))
        assert main(["validate", str(filepath)]) == 1
        assert "invalid schematic" in capsys.readouterr().err


class TestMigrateCommand:
    def test_to_stdout(self, tmp_path, capsys):
        legacy = tmp_path / "legacy.json"
        legacy.write_text(json.dumps({"wires": [{"id": "a", "points": [{"x": 0, "y": 0}, {"x": 9, "y": 0}]}]}))
        assert main(["migrate", str(legacy)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [n["id"] for n in data["nodes"]] == ["a-n0", "a-n1"]

    def test_to_file(self, tmp_path):
        legacy = tmp_path / "legacy.json"
        legacy.write_text(json.dumps({"wires": [{"id": "a", "points": [{"x": 0, "y": 0}, {"x": 9, "y": 0}]}]}))
        output = tmp_path / "out.json"
        assert main(["migrate", str(legacy), "-o", str(output)]) == 0
        assert json.loads(output.read_text())["nodes"][0]["type"] == "wireAnchor"


class TestParser:
    def test_no_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_check_requires_circuit(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["check"])

    def test_pair_is_repeatable(self, loop_file):
        args = build_parser().parse_args(["check", loop_file, "--pair", "a:b", "--pair", "c:d"])
        assert [p.positive for p in args.pair] == ["a", "c"]

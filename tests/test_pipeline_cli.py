import json
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "scripts"))

import pipeline_cli  # noqa: E402


def _write_sensor(path, impedances):
    lines = []
    for i, z in enumerate(impedances):
        lines.append(f"05/06/2024 12:{i:02d}:00,0,0,0,0,0,0,{z},-20")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_cli_runs_end_to_end(tmp_path, capsys):
    data = tmp_path / "data"
    data.mkdir()
    (data / "gas_flow_table.csv").write_text("1,0,60\n2,100,120\n3,0,60\n", encoding="utf-8")
    _write_sensor(data / "exp__0__vs_time.csv", [100, 100, 150, 150, 100])
    _write_sensor(data / "exp__1__vs_time.csv", [50, 55, 60, 65, 70])
    out = tmp_path / "out"

    code = pipeline_cli.main([
        "--data", str(data),
        "--out", str(out),
        "--ref-time", "0:30",
        "--set", "gas_profile.cylinder_concentration=50",
    ])

    assert code == 0
    summary = json.loads((out / "summary.json").read_text())
    assert [s['sensor_number'] for s in summary['sensors']] == [1, 2]
    assert len(summary['exposure_events']) == 1
    assert summary['exposure_events'][0]['concentration'] == 10.0
    assert (out / "sensor_1.csv").is_file()
    assert (out / "gas_profile.csv").is_file()
    printed = capsys.readouterr().out
    assert "Exposure summary" in printed
    assert "event: 1.017-3.000 min @ 10.0" in printed
    assert printed.isascii()


def test_cli_reports_bad_reference_time(tmp_path, capsys):
    data = tmp_path / "data"
    data.mkdir()
    _write_sensor(data / "exp__0__vs_time.csv", [100, 110])

    code = pipeline_cli.main(["--data", str(data), "--out", str(tmp_path / "out"), "--ref-time", "later"])

    assert code == 2
    assert "Configuration error" in capsys.readouterr().err


def test_parse_override_requires_equals():
    assert pipeline_cli._parse_override("a.b=3") == ("a.b", "3")
    with pytest.raises(Exception):
        pipeline_cli._parse_override("a.b")


def test_unreadable_files_are_skipped(tmp_path, capsys):
    data = tmp_path / "data"
    data.mkdir()
    (data / "gas_flow_table.csv").write_bytes(b"1,0,60\n\xff\xfe,100,120\n")
    _write_sensor(data / "exp__0__vs_time.csv", [100, 100, 150])
    (data / "exp__1__vs_time.csv").write_bytes(b"05/06/2024 12:00:00,\xff\n")
    out = tmp_path / "out"

    code = pipeline_cli.main(["--data", str(data), "--out", str(out), "--ref-time", "0:30"])

    assert code == 0
    summary = json.loads((out / "summary.json").read_text())
    assert [s['file_name'] for s in summary['sensors']] == ["exp__0__vs_time.csv"]
    assert summary['profile_points'] == 0
    assert "skipped_files: exp__1__vs_time.csv" in capsys.readouterr().out


def test_cli_spectroscopy_mode(tmp_path, capsys):
    data = tmp_path / "data"
    data.mkdir()
    sweep = "Frequency (Hz),Angle,Z\n100,-10,2000\n1000,-20,1500\n"
    (data / "chip__IS_05_06_2024 12_01_30.csv").write_text(sweep, encoding="utf-8")
    (data / "chip__IS_05_06_2024 12_00_00.csv").write_text(sweep, encoding="utf-8")
    out = tmp_path / "out"

    code = pipeline_cli.main(["--data", str(data), "--out", str(out), "--mode", "spectroscopy"])

    assert code == 0
    summary = json.loads((out / "spectroscopy_summary.json").read_text())
    assert [s['relative_time_min'] for s in summary['sweeps']] == [0.0, 1.5]
    assert summary['frequencies'] == [100.0, 1000.0]
    assert (out / "impedance.csv").is_file()
    assert "Spectroscopy summary" in capsys.readouterr().out

import copy
import logging

import pytest

from config.config_loader import load_config
from gas_exposure.analyzer import ExposureAnalyzer, SensorFile
from gas_exposure.exceptions import ConfigurationError


GAS_FLOW_ROWS = [
    ["1", "0", "60"],
    ["2", "100", "120"],
    ["3", "0", "60"],
]


def _config(**sensor_overrides):
    cfg = copy.deepcopy(load_config())
    cfg['gas_profile'] = {'total_flowrate': 500, 'cylinder_concentration': 50}
    cfg['sensor'].update(sensor_overrides)
    return cfg


def _sensor_rows(impedances, seconds_step=60):
    rows = []
    for i, z in enumerate(impedances):
        total = i * seconds_step
        mm, ss = divmod(total, 60)
        rows.append([f"02/03/2024 09:{mm:02d}:{ss:02d}", "", "", "", "", "", "", str(z), "-30"])
    return rows


def test_default_config_values():
    cfg = load_config()
    assert cfg['gas_profile']['total_flowrate'] == 500
    assert cfg['sensor']['reference_time'] == "0:55:00.0"
    assert cfg['sensor']['impedance_column'] == 7


def test_reference_time_from_config_and_override():
    analyzer = ExposureAnalyzer(_config(reference_time="1:30"))
    assert analyzer.reference_time_minutes() == pytest.approx(1.5)
    assert analyzer.reference_time_minutes("0:02:00") == pytest.approx(2.0)


def test_invalid_reference_time_aborts_run():
    analyzer = ExposureAnalyzer(_config(reference_time="soon"))
    calls = []
    with pytest.raises(ConfigurationError, match="Baseline Time"):
        analyzer.analyze([SensorFile("a.csv", _sensor_rows([1, 2]))], GAS_FLOW_ROWS,
                         progress=lambda done, total: calls.append(done))
    assert calls == []


def test_full_run_annotates_sensor_tables():
    analyzer = ExposureAnalyzer(_config(reference_time="0:30"))
    files = [
        SensorFile("a__0__vs_time.csv", _sensor_rows([100, 100, 150, 150, 100]), sensor_number=1),
        SensorFile("b__1__vs_time.csv", _sensor_rows([200, 210, 220, 230, 240]), sensor_number=2),
    ]
    progress = []
    result = analyzer.analyze(files, GAS_FLOW_ROWS, progress=lambda done, total: progress.append((done, total)))

    assert result.profile_available
    assert result.reference_time_minutes == pytest.approx(0.5)
    assert len(result.events) == 1
    assert result.events[0].concentration == 10.0
    assert progress == [(1, 2), (2, 2)]

    table_a, table_b = result.tables
    assert [r.signal for r in table_a.readings] == pytest.approx([0, 0, 50, 50, 0])
    assert [r.gas_concentration for r in table_a.readings] == [0.0, 0.0, 10.0, 10.0, 0.0]
    assert table_b.readings[4].signal == pytest.approx(20.0)
    assert table_b.sensor_number == 2


def test_gas_flow_failure_is_not_fatal(caplog):
    analyzer = ExposureAnalyzer(_config(reference_time="0:30"))
    files = [SensorFile("a.csv", _sensor_rows([100, 110]))]
    with caplog.at_level(logging.ERROR):
        result = analyzer.analyze(files, gas_flow_rows=[["x", "y", "z"]])
    assert not result.profile_available
    assert result.profile == () and result.events == ()
    assert result.tables[0].readings[1].signal == pytest.approx(10.0)
    assert result.tables[0].readings[1].gas_concentration is None
    assert "gas flow table" in caplog.text


def test_negative_duration_in_gas_flow_is_reported():
    analyzer = ExposureAnalyzer(_config(reference_time="0:30"))
    result = analyzer.analyze([], gas_flow_rows=[["1", "10", "-60"]])
    assert not result.profile_available
    assert result.tables == ()


def test_without_gas_flow_table_no_annotation():
    analyzer = ExposureAnalyzer(_config(reference_time="0:30"))
    result = analyzer.analyze([SensorFile("a.csv", _sensor_rows([100, 110]))])
    assert result.profile == ()
    assert result.tables[0].readings[0].gas_concentration is None


def test_empty_file_is_skipped_and_reported():
    analyzer = ExposureAnalyzer(_config(reference_time="0:30"))
    files = [SensorFile("empty.csv", []), SensorFile("a.csv", _sensor_rows([100, 110]))]
    progress = []
    result = analyzer.analyze(files, GAS_FLOW_ROWS, progress=lambda d, t: progress.append(d))
    assert [t.file_name for t in result.tables] == ["a.csv"]
    assert result.skipped_files == ("empty.csv",)
    assert progress == [1, 2]


def test_build_profile_rejects_invalid_cylinder_concentration():
    cfg = _config()
    cfg['gas_profile']['cylinder_concentration'] = 'lots'
    with pytest.raises(ConfigurationError):
        ExposureAnalyzer(cfg).build_profile(GAS_FLOW_ROWS)

import argparse
import logging
import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running from anywhere
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config.config_loader import load_config, get_section  # noqa: E402
from gas_exposure.analyzer import ExposureAnalyzer, SensorFile, SweepFile  # noqa: E402
from gas_exposure.core.exports import save_analysis, save_spectroscopy  # noqa: E402
from gas_exposure.core.file_names import extract_sensor_number, sort_by_sensor_number  # noqa: E402
from gas_exposure.data_loader import (  # noqa: E402
    file_modified_time,
    list_sensor_files,
    read_csv_rows,
    read_text_file,
)
from gas_exposure.exceptions import ConfigurationError  # noqa: E402

logger = logging.getLogger("pipeline_cli")

# Failures that make a single input file unusable
FILE_ERRORS = (OSError, ValueError)


def _parse_override(text):
    if '=' not in text:
        raise argparse.ArgumentTypeError(f"Override must look like key=value: {text!r}")
    key, value = text.split('=', 1)
    return key.strip(), value.strip()


def _load_sensor_files(data_dir, cfg):
    files_cfg = get_section(cfg, 'files')
    paths = list_sensor_files(
        data_dir,
        pattern=files_cfg.get('sensor_pattern', '*vs_time.csv*'),
        exclude=files_cfg.get('gas_flow_name', 'gas_flow_table.csv'),
    )
    sensor_files = []
    for path in sort_by_sensor_number(paths):
        try:
            rows = read_csv_rows(path)
        except FILE_ERRORS as e:
            # An unreadable file is kept without rows so the run reports it as skipped
            logger.warning(f"Skipping {path.name}: {e}")
            rows = []
        sensor_files.append(SensorFile(
            name=path.name,
            rows=rows,
            original_name=path.name,
            sensor_number=extract_sensor_number(path.name),
        ))
    return sensor_files


def _load_gas_flow_rows(gas_flow_path):
    if not gas_flow_path:
        return None
    try:
        return read_csv_rows(gas_flow_path)
    except FILE_ERRORS as e:
        # Empty rows make the analyzer report the table as unusable
        logger.error(f"Could not read gas flow table {gas_flow_path}: {e}")
        return []


def _load_sweep_files(data_dir, cfg):
    pattern = get_section(cfg, 'files').get('spectroscopy_pattern', '*__IS_*.csv')
    sweep_files = []
    for path in sorted(list_sensor_files(data_dir, pattern=pattern)):
        try:
            text = read_text_file(path)
        except FILE_ERRORS as e:
            logger.warning(f"Skipping {path.name}: {e}")
            continue
        sweep_files.append(SweepFile(
            name=path.name,
            text=text,
            original_name=path.name,
            modified_time=file_modified_time(path),
        ))
    return sweep_files


def _progress(done, total):
    print(f"  [{done}/{total}] files processed")


def _run_spectroscopy(analyzer, data_dir, out_root, cfg, na_rep):
    sweeps = analyzer.analyze_spectroscopy(_load_sweep_files(data_dir, cfg), progress=_progress)
    paths = save_spectroscopy(sweeps, out_root, na_rep=na_rep)

    print("\nSpectroscopy summary")
    print("--------------------")
    print(f"sweeps: {len(sweeps)}")
    for sweep in sweeps:
        print(f"sweep: {sweep.file_name} @ {sweep.relative_time_minutes:.4f} min ({len(sweep)} points)")
    print(f"summary: {paths['summary']}")
    print("\nOutputs written under:", out_root)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Headless gas exposure pipeline: flow table -> concentration profile -> sensor signals"
    )
    parser.add_argument("--data", required=True, help="Directory containing sensor CSV files")
    parser.add_argument("--mode", choices=["time-series", "spectroscopy"], default="time-series",
                        help="Analysis to run on the data directory")
    parser.add_argument("--gas-flow", default=None,
                        help="Gas flow table CSV (defaults to files.gas_flow_name inside --data if present)")
    parser.add_argument("--out", default=str(REPO_ROOT / "output"), help="Output directory")
    parser.add_argument("--config", default=None, help="Path to a YAML configuration file")
    parser.add_argument("--ref-time", default=None, help="Baseline reference time [HH:]MM:SS[.sss]")
    parser.add_argument("--set", dest="overrides", action="append", type=_parse_override, default=[],
                        help="Config override as dotted.key=value (repeatable)")

    args = parser.parse_args(argv)

    cfg = load_config(args.config, overrides=args.overrides)

    level = str(get_section(cfg, 'logging').get('level', 'INFO')).upper()
    logging.basicConfig(level=level, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    data_dir = os.path.abspath(args.data)
    out_root = os.path.abspath(args.out)
    na_rep = str(get_section(cfg, 'export').get('na_rep', 'N/A'))
    analyzer = ExposureAnalyzer(cfg)

    if args.mode == "spectroscopy":
        print("Running spectroscopy pipeline...")
        print(f"  data_dir: {data_dir}")
        print(f"  out_root: {out_root}")
        return _run_spectroscopy(analyzer, data_dir, out_root, cfg, na_rep)

    gas_flow_path = args.gas_flow
    if gas_flow_path is None:
        candidate = Path(data_dir) / get_section(cfg, 'files').get('gas_flow_name', 'gas_flow_table.csv')
        gas_flow_path = str(candidate) if candidate.is_file() else None

    print("Running gas exposure pipeline...")
    print(f"  data_dir: {data_dir}")
    print(f"  gas_flow: {gas_flow_path or '(none)'}")
    print(f"  out_root: {out_root}")

    gas_flow_rows = _load_gas_flow_rows(gas_flow_path)
    sensor_files = _load_sensor_files(data_dir, cfg)

    try:
        result = analyzer.analyze(
            sensor_files,
            gas_flow_rows=gas_flow_rows,
            reference_time=args.ref_time,
            progress=_progress,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    paths = save_analysis(result.profile, result.events, result.tables, out_root, na_rep=na_rep)

    print("\nExposure summary")
    print("----------------")
    print(f"profile_points: {len(result.profile)}")
    for event in result.events:
        print(f"event: {event.start_time:.3f}-{event.end_time:.3f} min @ {event.concentration}")
    print(f"sensor_tables: {len(result.tables)}")
    if result.skipped_files:
        print(f"skipped_files: {', '.join(result.skipped_files)}")
    print(f"summary: {paths['summary']}")
    print("\nOutputs written under:", out_root)
    return 0


if __name__ == "__main__":
    sys.exit(main())

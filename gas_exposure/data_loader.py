import csv
import io
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


def read_csv_rows(file_path: Union[str, Path], encoding: str = 'utf-8') -> List[List[str]]:
    """
    Read a headerless CSV file into rows of strings.

    Rows keep their own length: a row shorter than the widest row is not
    padded, so callers can detect missing columns. Quoted cells may contain
    commas and line breaks.

    Args:
        file_path: Path to the CSV file
        encoding: Text encoding of the file

    Returns:
        List of rows, each a list of cell strings. Empty files yield [].

    Raises:
        OSError: if the file cannot be opened.
        ValueError: if the file cannot be decoded or tokenized.
    """
    path = Path(file_path)
    try:
        text = path.read_text(encoding=encoding)
        records = list(csv.reader(io.StringIO(text, newline='')))
    except csv.Error as e:
        logger.error(f"Error parsing {path}: {str(e)}")
        raise ValueError(f"Malformed CSV in {path}: {e}") from e
    except Exception as e:
        logger.error(f"Error reading {path}: {str(e)}")
        raise

    rows = [record for record in records if any(cell.strip() for cell in record)]
    if not rows:
        logger.warning(f"No data rows in {path}")
        return []

    logger.info(f"Successfully loaded {len(rows)} rows from {path}")
    return rows


def read_text_file(file_path: Union[str, Path], encoding: str = 'utf-8') -> str:
    """Read a whole file as text, logging failures before re-raising them."""
    path = Path(file_path)
    try:
        return path.read_text(encoding=encoding)
    except Exception as e:
        logger.error(f"Error reading {path}: {str(e)}")
        raise


def file_modified_time(file_path: Union[str, Path]) -> Optional[datetime]:
    """Last modification time of a file, or None if it cannot be read."""
    try:
        return datetime.fromtimestamp(Path(file_path).stat().st_mtime)
    except OSError:
        return None


def list_sensor_files(data_dir: Union[str, Path], pattern: str = '*vs_time.csv*',
                      exclude: Union[str, None] = None) -> List[Path]:
    """Sensor files in a directory matching ``pattern``, excluding the gas flow table."""
    base = Path(data_dir)
    if not base.is_dir():
        raise FileNotFoundError(f"Directory not found: {base}")
    files = [p for p in base.glob(pattern) if p.is_file() and p.name != exclude]
    if not files:
        logger.warning(f"No sensor files matching {pattern!r} in {base}")
    return files

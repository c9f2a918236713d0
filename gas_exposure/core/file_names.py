"""Sensor numbering conventions of exported time-series file names."""

import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

_SENSOR_PATTERNS = (
    re.compile(r'__([0-9]+)__vs_time\.csv$', re.IGNORECASE),
    re.compile(r'vs_time\.csv([0-9]+)$', re.IGNORECASE),
)


def extract_sensor_number(filename: Union[str, Path], for_display: bool = True) -> Optional[int]:
    """Sensor number encoded in a file name.

    Instruments number channels from zero; ``for_display`` shifts the value to
    the one-based numbering shown to users.
    """
    name = Path(filename).name
    for pattern in _SENSOR_PATTERNS:
        match = pattern.search(name)
        if match:
            number = int(match.group(1))
            return number + 1 if for_display else number
    return None


def sort_by_sensor_number(filenames: Iterable[Union[str, Path]]) -> List[Union[str, Path]]:
    """Numbered files first in sensor order, the rest alphabetically by name."""
    def _key(item) -> Tuple[int, int, str]:
        number = extract_sensor_number(item, for_display=False)
        name = Path(item).name
        if number is None:
            return (1, 0, name)
        return (0, number, name)

    return sorted(filenames, key=_key)

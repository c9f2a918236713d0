"""
Gas Exposure Analysis Package
-------------------
Concentration profiles, exposure events and baseline-normalized sensor
signals for controlled gas exposure experiments.
"""

__version__ = "1.0.0"

# Import key components for easier access
from .analyzer import ExposureAnalyzer, SensorFile, SweepFile, AnalysisResult
from .exceptions import ConfigurationError
from .core.gas_profile import build_concentration_profile
from .core.exposure_events import identify_exposure_events
from .core.sampler import interpolate_concentration
from .core.sensor_signal import process_sensor_rows

__all__ = [
    'ExposureAnalyzer',
    'SensorFile',
    'SweepFile',
    'AnalysisResult',
    'ConfigurationError',
    'build_concentration_profile',
    'identify_exposure_events',
    'interpolate_concentration',
    'process_sensor_rows',
]

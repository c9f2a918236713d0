"""Exceptions raised by the gas exposure pipeline."""


class ConfigurationError(ValueError):
    """Run-level configuration that makes further processing meaningless.

    Raised for an unparseable reference time or an invalid gas flow schedule.
    Missing or invalid measurements are never reported this way; they become
    undefined (``None``) fields on the affected readings.
    """

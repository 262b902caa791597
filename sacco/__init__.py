"""Core SACCO domain package: presets, models and calculators.

This module also exposes the package version for runtime display."""

__all__ = ["__version__"]

# Keep in sync with the version declared in ``pyproject.toml``
__version__ = "0.1.0"

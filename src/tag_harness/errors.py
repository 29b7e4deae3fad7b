"""Exceptions raised by the harness."""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for every harness error."""


class ConfigurationError(HarnessError, ValueError):
    """Fatal problem with the run configuration or command line."""


class InputDirectoryError(ConfigurationError, FileNotFoundError):
    """The directory to read from does not exist."""


class UnsupportedFamilyError(ConfigurationError):
    """A configured tag family is not provided by the detector backend."""


class ImageLoadError(HarnessError, ValueError):
    """An image could not be read or decoded. Recoverable per image."""


class ReportFormatError(HarnessError, ValueError):
    """A report or manifest document does not have the expected shape."""

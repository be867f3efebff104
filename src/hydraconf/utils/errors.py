"""Typed exceptions raised while locating, decoding and overlaying configuration."""


class HydraError(Exception):
    """Base class for all configuration loading errors."""


class PathResolutionError(HydraError, ValueError):
    """Raised when the search configuration cannot describe any candidate file."""


class FilesystemError(HydraError, OSError):
    """Raised when a search directory or configuration file cannot be read."""


class DecodeError(HydraError, ValueError):
    """Raised when a document is malformed or a value does not fit its field."""


class DestinationTypeError(HydraError, TypeError):
    """Raised when the destination is not a structured record."""


class ConversionError(HydraError, ValueError):
    """Raised when an environment value cannot be converted to the field type."""


class UnsupportedTypeError(HydraError, TypeError):
    """Raised when an environment binding targets a field type with no conversion."""


class ValidationError(HydraError, ValueError):
    """Raised when the populated record violates its declared constraints."""

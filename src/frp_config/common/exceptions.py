"""Custom exceptions for the FRP configuration codec."""


class FRPConfigError(Exception):
    """Base exception for all FRP configuration codec errors."""

    pass


class UnsupportedFormatError(FRPConfigError):
    """Raised when input is not in a configuration format the codec handles."""

    pass


class DocumentError(FRPConfigError):
    """Raised when a document holds a value the TOML model cannot represent."""

    pass


class MappingError(FRPConfigError):
    """Raised when a schema table does not match the typed configuration models."""

    pass

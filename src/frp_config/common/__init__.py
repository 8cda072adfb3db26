"""Common utilities and shared functionality."""

from .exceptions import (
    DocumentError,
    FRPConfigError,
    MappingError,
    UnsupportedFormatError,
)
from .logging import get_logger, setup_logging
from .settings import DEFAULT_SHARE_LINK_SCHEME, ConverterSettings
from .utils import (
    MAX_PORT,
    MIN_PORT,
    base64_decode,
    base64_encode,
    format_bandwidth,
    generate_random_name,
    mask_sensitive_data,
    parse_bandwidth,
    sanitize_log_data,
    split_list,
    validate_non_empty_string,
)

__all__ = [
    # Exceptions
    "FRPConfigError",
    "UnsupportedFormatError",
    "DocumentError",
    "MappingError",
    # Logging
    "get_logger",
    "setup_logging",
    # Settings
    "ConverterSettings",
    "DEFAULT_SHARE_LINK_SCHEME",
    # Utils
    "validate_non_empty_string",
    "parse_bandwidth",
    "format_bandwidth",
    "split_list",
    "base64_encode",
    "base64_decode",
    "generate_random_name",
    "mask_sensitive_data",
    "sanitize_log_data",
    "MIN_PORT",
    "MAX_PORT",
]

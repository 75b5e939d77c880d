"""
Security components for drivekit.

Keeps credentials typed into pages, and tokens carried by URLs, out of logs.
"""

from .sanitizer import (
    DEFAULT_SENSITIVE_KEYS,
    DataSanitizer,
    SensitiveDataPattern,
    RedactionMethod,
    sanitize_dict,
    sanitize_string,
    mask_sensitive_data
)

__all__ = [
    "DEFAULT_SENSITIVE_KEYS",
    "DataSanitizer",
    "SensitiveDataPattern",
    "RedactionMethod",
    "sanitize_dict",
    "sanitize_string",
    "mask_sensitive_data"
]

"""
Redaction of sensitive data before it reaches logs.

Browser sessions routinely type credentials into forms and load URLs that
carry tokens in their query strings. Everything that is logged by drivekit
passes through a DataSanitizer first.
"""

import hashlib
import logging
import re
from copy import deepcopy
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, FrozenSet, List, Optional, Pattern

logger = logging.getLogger(__name__)


class RedactionMethod(Enum):
    """Methods for redacting sensitive data."""
    MASK = auto()          # Replace with asterisks
    HASH = auto()          # Replace with hash
    PARTIAL = auto()       # Show partial (first/last few chars)
    PLACEHOLDER = auto()   # Replace with placeholder text


@dataclass
class SensitiveDataPattern:
    """Pattern for identifying sensitive data inside free text."""

    name: str
    pattern: Pattern[str]
    redaction_method: RedactionMethod = RedactionMethod.PLACEHOLDER
    placeholder: str = "[REDACTED]"
    partial_chars: int = 4  # For PARTIAL method
    enabled: bool = True

    def matches(self, text: str) -> List[re.Match]:
        """Find all matches in text."""
        if not self.enabled:
            return []
        return list(self.pattern.finditer(text))


# Keys whose values are replaced wholesale, whatever they contain.
# "text" and "keys" carry send_keys input, which may be a password.
DEFAULT_SENSITIVE_KEYS: FrozenSet[str] = frozenset({
    "password",
    "passwd",
    "secret",
    "token",
    "api_key",
    "authorization",
    "cookie",
    "text",
    "keys",
})


class DataSanitizer:
    """Main sanitizer for protecting sensitive data."""

    def __init__(self, sensitive_keys: Optional[FrozenSet[str]] = None):
        """Initialize with default patterns."""
        self.patterns: List[SensitiveDataPattern] = []
        self.sensitive_keys = frozenset(
            key.lower() for key in (sensitive_keys or DEFAULT_SENSITIVE_KEYS)
        )
        self.key_placeholder = "[REDACTED]"
        self._setup_default_patterns()

    def _setup_default_patterns(self) -> None:
        """Set up default sensitive data patterns."""
        self.patterns.extend([
            SensitiveDataPattern(
                name="password_field",
                pattern=re.compile(
                    r'(?<![A-Za-z0-9_])(password|passwd|pwd)["\']?\s*[:=]\s*["\']?[^"\'\s&;,}]+["\']?',
                    re.IGNORECASE,
                ),
                placeholder="[PASSWORD]",
            ),
            SensitiveDataPattern(
                name="url_credentials",
                pattern=re.compile(r'(?<=://)[^/\s:@]+:[^/\s@]+(?=@)'),
                placeholder="[CREDENTIALS]",
            ),
            SensitiveDataPattern(
                name="query_token",
                pattern=re.compile(
                    r'(?<=[?&])(access_token|token|api_key|apikey|key|session|sid)=[^&#\s]+',
                    re.IGNORECASE,
                ),
                placeholder="[TOKEN]",
            ),
            SensitiveDataPattern(
                name="bearer_token",
                pattern=re.compile(r'Bearer\s+[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE),
            ),
            SensitiveDataPattern(
                name="jwt_token",
                pattern=re.compile(r'eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+'),
                redaction_method=RedactionMethod.HASH,
            ),
            SensitiveDataPattern(
                name="credit_card",
                pattern=re.compile(r'\b(?:\d{4}[\s-]?){3}\d{4}\b'),
                redaction_method=RedactionMethod.PARTIAL,
            ),
            SensitiveDataPattern(
                name="email",
                pattern=re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'),
                redaction_method=RedactionMethod.PARTIAL,
                partial_chars=2,
                enabled=False,  # Off by default; login flows log the account they use
            ),
        ])

    def add_pattern(self, pattern: SensitiveDataPattern) -> None:
        """Add a custom pattern."""
        self.patterns.append(pattern)

    def is_sensitive_key(self, key: str) -> bool:
        """Whether values stored under this key must never be logged."""
        return key.lower() in self.sensitive_keys

    def sanitize_string(self, text: str) -> str:
        """
        Sanitize a string using all enabled patterns.

        Args:
            text: Text to sanitize

        Returns:
            Sanitized text
        """
        if not text:
            return text

        result = text
        for pattern in self.patterns:
            matches = pattern.matches(result)
            # Process from the end so earlier spans stay valid
            for match in reversed(matches):
                result = self._apply_redaction(result, match, pattern)

        return result

    def _apply_redaction(
        self,
        text: str,
        match: re.Match,
        pattern: SensitiveDataPattern
    ) -> str:
        """Apply redaction based on method."""
        start, end = match.span()
        matched_text = match.group()

        if pattern.redaction_method == RedactionMethod.MASK:
            replacement = "*" * len(matched_text)

        elif pattern.redaction_method == RedactionMethod.HASH:
            hash_val = hashlib.sha256(matched_text.encode()).hexdigest()[:8]
            replacement = f"[HASH:{hash_val}]"

        elif pattern.redaction_method == RedactionMethod.PARTIAL:
            replacement = mask_sensitive_data(
                matched_text, pattern.partial_chars, pattern.partial_chars
            )

        else:  # PLACEHOLDER
            replacement = pattern.placeholder

        return text[:start] + replacement + text[end:]

    def sanitize_dict(self, data: Dict[str, Any], max_depth: int = 10) -> Dict[str, Any]:
        """
        Sanitize a dictionary recursively.

        Args:
            data: Dictionary to sanitize
            max_depth: Maximum recursion depth

        Returns:
            Sanitized dictionary (copy)
        """
        if max_depth <= 0:
            logger.warning("Max recursion depth reached in sanitize_dict")
            return data

        result = deepcopy(data)
        for key, value in result.items():
            result[key] = self._sanitize_value(value, str(key), max_depth)
        return result

    def _sanitize_value(self, value: Any, key: Optional[str], max_depth: int) -> Any:
        if key and self.is_sensitive_key(key) and value not in (None, ""):
            return self.key_placeholder
        if isinstance(value, str):
            return self.sanitize_string(value)
        if isinstance(value, dict):
            return self.sanitize_dict(value, max_depth - 1)
        if isinstance(value, (list, tuple)):
            return [self._sanitize_value(item, None, max_depth) for item in value]
        return value

    def sanitize_log_record(self, record: logging.LogRecord) -> logging.LogRecord:
        """
        Sanitize a log record in place, including ``extra`` attributes.

        Args:
            record: Log record to sanitize

        Returns:
            Sanitized log record
        """
        record.msg = self.sanitize_string(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = self.sanitize_dict(record.args)
            else:
                record.args = tuple(
                    self.sanitize_string(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        for key, value in list(vars(record).items()):
            if key in _RESERVED_RECORD_ATTRS:
                continue
            setattr(record, key, self._sanitize_value(value, key, 10))

        return record


_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


def mask_sensitive_data(
    text: str,
    start_chars: int = 4,
    end_chars: int = 4
) -> str:
    """
    Mask sensitive data showing only start/end characters.

    Args:
        text: Text to mask
        start_chars: Number of characters to show at start
        end_chars: Number of characters to show at end

    Returns:
        Masked text
    """
    if len(text) <= start_chars + end_chars:
        return "*" * len(text)

    return (
        text[:start_chars] +
        "*" * (len(text) - start_chars - end_chars) +
        text[-end_chars:]
    )


# Convenience functions
_default_sanitizer = DataSanitizer()


def sanitize_string(text: str) -> str:
    """Sanitize a string using default patterns."""
    return _default_sanitizer.sanitize_string(text)


def sanitize_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize a dictionary using default rules."""
    return _default_sanitizer.sanitize_dict(data)

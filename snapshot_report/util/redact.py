"""Utilities for redacting sensitive data from strings."""

import re

# Patterns for sensitive data that should be redacted
SENSITIVE_PATTERNS = [
    # Passwords, tokens, secrets in key=value or key: value form
    (r'(password|passwd|pwd|token|secret)([=:"\s]+)\S+', r'\1\2REDACTED'),
    # vCenter session cookies
    (r'vmware_soap_session=("?)[^";\s]+', r'vmware_soap_session=\1REDACTED'),
    # Basic auth in URLs
    (r'(https?://[^:/\s]+):[^@\s]+@', r'\1:REDACTED@'),
]


def redact_sensitive(text: str) -> str:
    """
    Redact sensitive data from text using pattern matching.

    Args:
        text: Text potentially containing sensitive data

    Returns:
        Text with sensitive data replaced with REDACTED markers

    Example:
        >>> redact_sensitive("login failed, pwd=hunter2")
        'login failed, pwd=REDACTED'
    """
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE)
    return result

"""Redaction and error-exposure rules shared by logging and error handling.

Keys listed here are masked wherever structured log context is emitted, and
the error field sets decide which diagnostics an error envelope may carry in
each environment.
"""

# Matched as substrings against lower-cased keys, so "api_key" also covers
# "openai_api_key" and "x-api-key".
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        # Credentials
        "password",
        "secret",
        "token",
        "authorization",
        "api_key",
        "api-key",
        "jwt",
        "bearer",
        "cookie",
        "session_id",
        "csrf",
        # Personal data of students, parents and staff
        "email",
        "phone",
        "address",
        "birth",
    }
)

# Fields an error envelope may carry in production
PRODUCTION_ERROR_FIELDS: frozenset[str] = frozenset({"correlation_id", "type"})

# Development adds diagnostics
DEVELOPMENT_ERROR_FIELDS: frozenset[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Return the error envelope fields permitted for ``environment``."""
    if environment == "production":
        return set(PRODUCTION_ERROR_FIELDS)
    return set(DEVELOPMENT_ERROR_FIELDS)


def is_sensitive_key(key: str) -> bool:
    """True when a log/context key should have its value redacted."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)

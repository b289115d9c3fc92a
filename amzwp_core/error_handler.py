"""
User-Friendly Error Handler.

Turns discovery, audit and publishing failures into one readable message
with an actionable suggestion. Typed errors are classified by type; anything
else falls back to matching known message patterns.
"""

from typing import Dict, Optional
import logging

from .errors import (
    AcquisitionError,
    CredentialsError,
    EnrichmentError,
    NetworkError,
    RelayExhaustionError,
    ValidationError,
    WordPressAPIError,
)
from .retry import is_retryable_status

logger = logging.getLogger(__name__)

NEEDS_CREDENTIALS = "needs_credentials"
UNREACHABLE = "unreachable"
MALFORMED_INPUT = "malformed_input"
ENRICHMENT = "enrichment"
UNKNOWN = "unknown"


# Typed errors: exception class -> user-friendly info (first match wins)
TYPE_MAPPINGS = (
    (CredentialsError, NEEDS_CREDENTIALS, {
        "message": "WordPress credentials are missing or incomplete",
        "suggestion": "Set AMZWP_WP_URL, AMZWP_WP_USER and AMZWP_WP_APP_PASSWORD, then run 'amzwp test-connection'",
        "severity": "error",
        "can_retry": False,
    }),
    (RelayExhaustionError, UNREACHABLE, {
        "message": "The site could not be reached through any relay",
        "suggestion": "The target may be blocking requests. Check the URL or run 'amzwp diagnose <url>'",
        "severity": "error",
        "can_retry": True,
    }),
    (AcquisitionError, UNREACHABLE, {
        "message": "Page content could not be retrieved",
        "suggestion": "The page is unreachable via REST, relays and scraping. Verify it is public",
        "severity": "error",
        "can_retry": True,
    }),
    (WordPressAPIError, UNREACHABLE, {
        "message": "WordPress rejected the update",
        "suggestion": "Check the application password and that the user may edit posts",
        "severity": "error",
        "can_retry": True,
    }),
    (NetworkError, UNREACHABLE, {
        "message": "Network request failed",
        "suggestion": "Check your internet connection and that the site is up, then retry",
        "severity": "error",
        "can_retry": True,
    }),
    (ValidationError, MALFORMED_INPUT, {
        "message": "The input could not be used",
        "suggestion": "Check the sitemap or URL you provided",
        "severity": "warning",
        "can_retry": False,
    }),
    (EnrichmentError, ENRICHMENT, {
        "message": "AI enrichment was unavailable; extracted products were used",
        "suggestion": "Check AMZWP_AI_API_KEY or run without it",
        "severity": "warning",
        "can_retry": True,
    }),
)


# Error mappings: pattern -> user-friendly info
ERROR_MAPPINGS = {
    "unauthorized": {
        "message": "The server refused the credentials",
        "suggestion": "Regenerate the WordPress application password and update AMZWP_WP_APP_PASSWORD",
        "severity": "error",
        "can_retry": False,
        "category": NEEDS_CREDENTIALS,
    },
    "timeout": {
        "message": "The site took too long to respond",
        "suggestion": "Check that the site is up, or raise AMZWP_TIMEOUT",
        "severity": "warning",
        "can_retry": True,
        "category": UNREACHABLE,
    },
    "connection refused": {
        "message": "Cannot connect to the site",
        "suggestion": "Check that the URL is correct and the site is reachable",
        "severity": "error",
        "can_retry": True,
        "category": UNREACHABLE,
    },
    "name or service not known": {
        "message": "The domain could not be resolved",
        "suggestion": "Check the domain spelling",
        "severity": "error",
        "can_retry": False,
        "category": UNREACHABLE,
    },
    "xml": {
        "message": "The sitemap is not valid XML",
        "suggestion": "Point to the sitemap file directly, e.g. https://example.com/sitemap.xml",
        "severity": "warning",
        "can_retry": False,
        "category": MALFORMED_INPUT,
    },
    "permission denied": {
        "message": "No permission to write the cache",
        "suggestion": "Check permissions of AMZWP_WORKSPACE",
        "severity": "error",
        "can_retry": False,
        "category": UNKNOWN,
    },
}

DEFAULT_ERROR = {
    "message": "An unexpected error occurred",
    "suggestion": "Check the technical log or try again",
    "severity": "error",
    "can_retry": True,
}


def _classify(error: Exception):
    for exc_type, category, info in TYPE_MAPPINGS:
        if isinstance(error, exc_type):
            return category, info
    error_str = str(error).lower()
    for pattern, info in ERROR_MAPPINGS.items():
        if pattern in error_str:
            return info["category"], info
    return UNKNOWN, DEFAULT_ERROR


def format_user_friendly_error(
    error: Exception,
    context: str = "general",
    technical_details: Optional[str] = None
) -> Dict:
    """
    Convert technical error to user-friendly message.

    Args:
        error: The exception that occurred
        context: Context where error occurred (e.g., "discover", "audit")
        technical_details: Additional technical information

    Returns:
        Dictionary with "message", "suggestion", "technical", "severity"
        and "can_retry"
    """
    _, info = _classify(error)
    result = {k: v for k, v in info.items() if k != "category"}
    # typed errors carry a precise message worth showing as is
    if isinstance(error, ValidationError) and str(error):
        result["message"] = str(error)
    result["technical"] = technical_details or str(error)
    logger.debug(f"Mapped error to user-friendly ({context}): {result['message']}")
    return result


def get_error_category(error: Exception) -> str:
    """
    Categorize error type.

    Returns:
        One of "needs_credentials", "unreachable", "malformed_input",
        "enrichment", "unknown"
    """
    category, _ = _classify(error)
    return category


def should_retry_error(error: Exception) -> bool:
    """A 4xx answer (other than 408/429) will not change on retry."""
    status = getattr(error, "status_code", None)
    if status and not is_retryable_status(status):
        return False
    return format_user_friendly_error(error).get("can_retry", False)


def format_error_for_logging(error: Exception, context: str = "") -> str:
    friendly = format_user_friendly_error(error, context)

    lines = [
        f"❌ {friendly['message']}",
        f"💡 {friendly['suggestion']}",
        f"🔧 Technical: {friendly['technical']}"
    ]

    if context:
        lines.insert(0, f"📍 Context: {context}")

    return "\n".join(lines)


"""Data validation helpers.

Functions:
- validate_email(email) -> bool: basic address shape check
- now_iso() -> str: current UTC timestamp for row fields
"""

import re
from datetime import datetime, timezone

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email(email: str) -> bool:
    """Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if the address looks like local@domain.tld
    """
    return bool(EMAIL_PATTERN.match(email or ""))


def now_iso() -> str:
    """Current UTC time as ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()

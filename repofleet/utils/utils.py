"""
repo-fleet Utilities
"""

import hashlib
import re


def mask_secret(secret: str, length: int = 5) -> str:
    """Return a short SHA-256 hash of a secret for logging."""
    h = hashlib.sha256(str(secret).encode("utf-8")).hexdigest()
    return f"<masked:{h[:length]}>"


def safe_filename(value: str) -> str:
    """Replace every non-word character so the value can be used as a file name."""
    return re.sub(r"\W", "-", value)

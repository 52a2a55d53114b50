"""Small helpers shared across warelay modules."""

import os
import re
from pathlib import Path


def get_config_dir() -> Path:
    """Get the warelay state directory (~/.warelay)."""
    return Path.home() / ".warelay"


def normalize_e164(number: str) -> str:
    """Normalize a provider address to E.164 (``whatsapp:+1 555`` -> ``+1555``).

    Returns an empty string when the address carries no digits.
    """
    without_prefix = re.sub(r"^whatsapp:", "", number.strip(), flags=re.IGNORECASE)
    digits = re.sub(r"\D", "", without_prefix)
    if not digits:
        return ""
    return f"+{digits}"


def resolve_user_path(raw: str) -> Path:
    """Expand ``~`` and make the path absolute."""
    return Path(os.path.abspath(Path(raw).expanduser()))

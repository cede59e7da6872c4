import re
import secrets
from datetime import datetime, timezone

DEFAULT_PREFIX = "POL"
RANDOM_DIGITS = 8


def policy_prefix(product_type: str | None) -> str:
    """First four alphanumeric characters of the product, upper-cased"""
    cleaned = re.sub(r"[^A-Za-z0-9]", "", product_type or "").upper()
    return cleaned[:4] or DEFAULT_PREFIX


def generate_policy_number(product_type: str | None) -> str:
    """
    Generate a candidate policy number, e.g. ``CORI-2026-04819327``.

    Candidates are random, not guaranteed unique: the caller inserts them
    against the (produit_nom, numero_police) unique constraint and asks for
    a new one on conflict.
    """
    year = datetime.now(timezone.utc).year
    digits = secrets.randbelow(10 ** RANDOM_DIGITS)
    return f"{policy_prefix(product_type)}-{year}-{digits:0{RANDOM_DIGITS}d}"

"""Input validation helpers shared by the API routes and services.

These run before anything touches the database: identifiers are parsed
into real UUIDs, free text is trimmed and clamped, and wallet/tx formats
are checked against their on-chain shapes.
"""

import re
import uuid
from typing import Any, Optional

from demoshare.errors import InvalidIdentifier

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.I
)
_TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_ETH_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(_UUID_RE.match(value))


def is_valid_tx_hash(value: Any) -> bool:
    return isinstance(value, str) and bool(_TX_HASH_RE.match(value))


def is_valid_eth_address(value: Any) -> bool:
    return isinstance(value, str) and bool(_ETH_ADDRESS_RE.match(value))


def parse_uuid(value: Any, name: str) -> uuid.UUID:
    """Parse a canonical UUID string or raise InvalidIdentifier naming the field."""
    if not is_valid_uuid(value):
        raise InvalidIdentifier(f"Invalid {name}")
    return uuid.UUID(value)


def sanitize_text(value: Any, max_length: int) -> Optional[str]:
    """Trim and clamp free text. Empty or missing input becomes None."""
    if value is None or value == "":
        return None
    text = str(value).strip()[:max_length]
    return text or None


def parse_limit(raw: Optional[str], default: int = 20, maximum: int = 100) -> int:
    """Clamp a pagination limit; garbage falls back to the default."""
    try:
        parsed = int(raw) if raw is not None else default
    except ValueError:
        return default
    if parsed < 1:
        return default
    return min(parsed, maximum)

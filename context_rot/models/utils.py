"""ID generation utility."""

import secrets


def gen_id(prefix: str) -> str:
    """Generate prefixed IDs: e.g. chk_xxx for context chunks."""
    return f"{prefix}{secrets.token_urlsafe(12)}"

"""Stable identifiers for engine entities."""

from ulid import ULID


def generate_card_id() -> str:
    """Generate a sortable card id using ULID."""
    return f"card_{ULID()}"

"""Verb set parsing."""
from typing import Tuple


def parse_verbs(raw: str) -> Tuple[str, ...]:
    """Split a comma-separated verb list, keeping order and duplicates."""

    return tuple(piece.strip() for piece in raw.split(",") if piece.strip())


__all__ = ["parse_verbs"]

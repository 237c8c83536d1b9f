"""Identifier generation for friends and interactions."""

from ulid import ULID


def generate_friend_id() -> str:
    """Generate a sortable, unique friend ID using ULID."""
    return f"friend_{ULID()}"


def generate_interaction_id() -> str:
    return f"ix_{ULID()}"

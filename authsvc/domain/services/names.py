from __future__ import annotations


def split_full_name(full_name: str) -> tuple[str, str]:
    """First word is the first name; the remaining words form the last name."""
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def join_full_name(first_name: str, last_name: str) -> str:
    return f"{first_name} {last_name}".strip()

"""Shared CLI formatting helpers."""

from __future__ import annotations


def format_comma_or_none(values: list[str]) -> str:
    if not values:
        return "none"
    return ", ".join(values)


def format_count(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"

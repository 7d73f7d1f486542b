"""Ordered fallback cascades shared by the discovery heuristics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Sequence, TypeVar

S = TypeVar("S")
R = TypeVar("R")


@dataclass(frozen=True)
class Strategy(Generic[S, R]):
    name: str
    apply: Callable[[S], R | None]


def first_success(
    strategies: Sequence[Strategy[S, R]],
    subject: S,
) -> tuple[str, R] | None:
    """Return ``(strategy name, result)`` of the first strategy yielding a truthy result."""
    for strategy in strategies:
        result = strategy.apply(subject)
        if result:
            return strategy.name, result
    return None


def find_marker(text: str | None, markers: Iterable[str]) -> str | None:
    if not text:
        return None
    for marker in markers:
        if marker in text:
            return marker
    return None

"""Diagnostics returned to the orchestration host."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator


@dataclass(frozen=True)
class Diagnostic:
    severity: str  # "error" | "warning"
    summary: str
    detail: str = ""

    def __str__(self) -> str:
        text = f"{self.severity.upper()}: {self.summary}"
        return f"{text}: {self.detail}" if self.detail else text


class Diagnostics:
    """Ordered collection of :class:`Diagnostic` entries."""

    def __init__(self, items: Iterable[Diagnostic] = ()) -> None:
        self._items: list[Diagnostic] = list(items)

    def add_error(self, summary: str, detail: str = "") -> None:
        self._items.append(Diagnostic("error", summary, detail))

    def add_warning(self, summary: str, detail: str = "") -> None:
        self._items.append(Diagnostic("warning", summary, detail))

    def has_error(self) -> bool:
        return any(d.severity == "error" for d in self._items)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity == "error"]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity == "warning"]

    def summaries(self) -> list[str]:
        return [d.summary for d in self._items]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"Diagnostics({self._items!r})"

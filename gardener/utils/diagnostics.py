from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class DiagnosticKind(str, Enum):
    MISSING_REFERENCE = "missing_reference"
    DEGENERATE_POOL = "degenerate_pool"
    INSUFFICIENT_INVENTORY = "insufficient_inventory"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    subject: Optional[str] = None


class Diagnostics:
    """
    Collects absorbed conditions during one engine pass.
    """

    def __init__(self):
        self._items: List[Diagnostic] = []

    def add(self, kind: DiagnosticKind, message: str, subject: Optional[object] = None) -> Diagnostic:
        diagnostic = Diagnostic(kind=kind, message=message, subject=None if subject is None else str(subject))
        self._items.append(diagnostic)
        return diagnostic

    def to_list(self) -> List[Diagnostic]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

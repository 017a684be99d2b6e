# src/foreman_converge/core/engine/report.py
"""
RunReport — resultado agregado de uma convergência.

Lista o resultado final de cada Resource (na ordem topológica do grafo),
a ordem efetiva de visita e os Resources que receberam refresh. O código
de saída é não zero quando qualquer Resource terminou em `failed`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from foreman_converge.core.resource.types import Outcome, ResourceId, ResourceResult


EXIT_OK = 0
EXIT_FAILED = 2


@dataclass(frozen=True)
class RunReport:
    """Resultado agregado de uma run (RunReport v1)."""

    run_id: str
    results: Dict[str, ResourceResult] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)
    refreshed: List[str] = field(default_factory=list)
    noop: bool = False

    def __getitem__(self, rid: Union[str, ResourceId]) -> ResourceResult:
        return self.results[str(rid)]

    def outcome(self, rid: Union[str, ResourceId]) -> Outcome:
        return self[rid].outcome

    def _with(self, outcome: Outcome) -> List[str]:
        return [rid for rid, r in self.results.items() if r.outcome is outcome]

    @property
    def failed(self) -> List[str]:
        return self._with(Outcome.FAILED)

    @property
    def changed(self) -> List[str]:
        return self._with(Outcome.CHANGED)

    @property
    def unchanged(self) -> List[str]:
        return self._with(Outcome.UNCHANGED)

    @property
    def skipped(self) -> List[str]:
        return self._with(Outcome.SKIPPED)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.ok else EXIT_FAILED

    def counts(self) -> Dict[str, int]:
        counts = {o.value: 0 for o in Outcome}
        for r in self.results.values():
            counts[r.outcome.value] += 1
        counts["refreshed"] = len(self.refreshed)
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "noop": self.noop,
            "exit_code": self.exit_code,
            "counts": self.counts(),
            "order": list(self.order),
            "refreshed": list(self.refreshed),
            "results": {rid: r.to_dict() for rid, r in self.results.items()},
        }

"""
RunContext — contexto mutável de uma run de convergência.

Enquanto o `NodeContext` é imutável e é o único contexto visível para os
Resources, o `RunContext` pertence ao Engine e acumula tudo que a run
produz para auditoria:

- identidade da run (run_id, created_at)
- configuração efetiva (defaults + local deep-merge)
- Manifest opcional (quando presente, o Engine registra cada Resource)
- log estruturado de eventos (em vez de `logging`)
- warnings agrupados por Resource

Princípios fundamentais:
- Isolamento por execução (cada run possui seu próprio contexto)
- Apenas o Engine escreve no contexto, sempre a partir da thread principal
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:  # pragma: no cover
    from foreman_converge.core.traceability.manifest import RunManifest


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class RunContext:
    """
    Contexto de execução de uma run.

    Campos canônicos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - config: configuração efetiva
    - manifest: Manifest v1 da run (opcional)
    - meta: metadados livres (ex.: caminho do catálogo, raiz do nó)
    - events: log estruturado de eventos
    - warnings: warnings por resource_id
    """

    run_id: str
    created_at: datetime
    config: Dict[str, Any] = field(default_factory=dict)
    manifest: Optional["RunManifest"] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, resource_id: Optional[str], level: str, message: str, **extra: Any) -> None:
        level = level.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        event = {
            "run_id": self.run_id,
            "resource_id": resource_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, resource_id: str, message: str) -> None:
        self.warnings.setdefault(resource_id, []).append(message)

    def events_for(self, resource_id: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("resource_id") == resource_id]

    # -----------------------------
    # Configuração
    # -----------------------------
    def section(self, name: str) -> Dict[str, Any]:
        value = (self.config or {}).get(name) or {}
        return value if isinstance(value, dict) else {}

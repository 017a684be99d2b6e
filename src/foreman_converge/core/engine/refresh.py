# src/foreman_converge/core/engine/refresh.py
"""
Propagação de refresh.

Quando um Resource termina com `changed` e é a ponta `before` de arestas
de refresh, cada ponta `after` recebe um sinal. Sinais são deduplicados
por alvo: um serviço notificado por três arquivos alterados é reiniciado
uma única vez, depois que todos eles foram aplicados.

A fila apenas acumula sinais; o Engine a drena após o passe topológico
completo, na ordem do grafo.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Sequence, Tuple

from foreman_converge.core.resource.types import ResourceId


class RefreshQueue:
    """Sinais de refresh pendentes, indexados por alvo."""

    def __init__(self) -> None:
        self._sources: Dict[ResourceId, List[ResourceId]] = {}

    def signal(self, source: ResourceId, target: ResourceId) -> None:
        sources = self._sources.setdefault(target, [])
        if source not in sources:
            sources.append(source)

    def sources(self, target: ResourceId) -> List[ResourceId]:
        return list(self._sources.get(target, []))

    def __contains__(self, target: object) -> bool:
        return target in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[ResourceId]:
        return iter(self._sources)

    def drain(self, order: Sequence[ResourceId]) -> List[Tuple[ResourceId, List[ResourceId]]]:
        """Retorna (alvo, fontes) na ordem dada e esvazia a fila."""
        pending = [(rid, list(self._sources[rid])) for rid in order if rid in self._sources]
        self._sources.clear()
        return pending

# src/foreman_converge/core/graph/graph.py
"""
Estrutura do grafo de Resources.

O `Graph` é construído uma única vez pelo builder e permanece somente
leitura durante a convergência, podendo ser compartilhado entre workers.

Invariantes:
    - Toda aresta referencia Resources presentes no grafo
    - Não há identidades duplicadas
    - Não há arestas duplicadas para o mesmo par (before, after); um par com
      aresta de refresh não possui também aresta apenas de ordenação
    - `order` é uma ordenação topológica válida de todos os Resources
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from foreman_converge.core.resource.resource import Resource
from foreman_converge.core.resource.types import ResourceId

from .errors import UnresolvedReferenceError


class EdgeKind(str, Enum):
    """
    Tipos de aresta.

        - ORDERING: `before` é aplicado antes de `after`
        - REFRESH:  ordenação + refresh de `after` quando `before` muda
    """
    ORDERING = "ordering"
    REFRESH = "refresh"


@dataclass(frozen=True)
class Edge:
    before: ResourceId
    after: ResourceId
    kind: EdgeKind = EdgeKind.ORDERING
    # origem da aresta: require, before, notify, subscribe, reference, autorequire
    source: str = "require"

    def to_dict(self) -> Dict[str, str]:
        return {
            "before": str(self.before),
            "after": str(self.after),
            "kind": self.kind.value,
            "source": self.source,
        }


class Graph:
    """
    Conjunto de Resources + conjunto de arestas, com índices de adjacência.

    Os Resources são mantidos na ordem de declaração; `position(rid)` expõe
    essa ordem para desempates determinísticos.
    """

    def __init__(
        self,
        resources: Sequence[Resource],
        edges: Iterable[Edge],
        order: Sequence[ResourceId] = (),
    ):
        self._resources: Dict[ResourceId, Resource] = {r.id: r for r in resources}
        self._positions: Dict[ResourceId, int] = {r.id: i for i, r in enumerate(resources)}
        self._edges: Tuple[Edge, ...] = tuple(edges)
        self._preds: Dict[ResourceId, List[ResourceId]] = {rid: [] for rid in self._resources}
        self._succs: Dict[ResourceId, List[ResourceId]] = {rid: [] for rid in self._resources}
        self._refresh: Dict[ResourceId, List[ResourceId]] = {rid: [] for rid in self._resources}

        for edge in self._edges:
            for end in (edge.before, edge.after):
                if end not in self._resources:
                    raise UnresolvedReferenceError(end, via=f"{edge.source} edge")
            self._preds[edge.after].append(edge.before)
            self._succs[edge.before].append(edge.after)
            if edge.kind is EdgeKind.REFRESH:
                self._refresh[edge.before].append(edge.after)

        self._order: Tuple[ResourceId, ...] = tuple(order) or tuple(self._resources)

    # -----------------------------
    # Acesso
    # -----------------------------
    @property
    def resources(self) -> Mapping[ResourceId, Resource]:
        return MappingProxyType(self._resources)

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._edges

    @property
    def order(self) -> Tuple[ResourceId, ...]:
        return self._order

    def ids(self) -> List[ResourceId]:
        return list(self._resources)

    def get(self, rid: ResourceId) -> Resource:
        return self._resources[rid]

    def __contains__(self, rid: object) -> bool:
        return rid in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def position(self, rid: ResourceId) -> int:
        return self._positions[rid]

    # -----------------------------
    # Adjacência
    # -----------------------------
    def predecessors(self, rid: ResourceId) -> List[ResourceId]:
        return list(self._preds[rid])

    def successors(self, rid: ResourceId) -> List[ResourceId]:
        return list(self._succs[rid])

    def refresh_targets(self, rid: ResourceId) -> List[ResourceId]:
        return list(self._refresh[rid])

    def to_dict(self) -> Dict[str, object]:
        return {
            "resources": [str(rid) for rid in self._resources],
            "order": [str(rid) for rid in self._order],
            "edges": [e.to_dict() for e in self._edges],
        }

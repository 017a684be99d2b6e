# src/foreman_converge/core/graph/planner.py
"""
Planejador da ordem de convergência (DAG).

Este módulo produz uma ordem topológica determinística dos Resources a
partir das arestas do grafo e detecta ciclos, nomeando seus membros.

Decisões arquiteturais:
    - Utiliza o algoritmo de Kahn
    - Empates (Resources prontos ao mesmo tempo) são resolvidos pela ordem
      de declaração, não pela ordem lexicográfica: a mesma declaração
      sempre produz a mesma run, e reordenar declarações sem relação de
      dependência não altera a ordem relativa de Resources dependentes
    - Em caso de ciclo, um ciclo concreto é extraído do subgrafo residual
      e reportado em `CycleDetectedError.members`

Invariantes:
    - Nenhum Resource aparece antes de seus predecessores
    - Todos os Resources aparecem exatamente uma vez
    - A mesma entrada sempre produz a mesma ordem

Limites explícitos:
    - Não executa Resources
    - Não valida identidades (responsabilidade do builder)
"""

from __future__ import annotations

import heapq
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from foreman_converge.core.resource.types import ResourceId

from .errors import CycleDetectedError, UnresolvedReferenceError


def _find_cycle(nodes: Sequence[ResourceId], succs: Dict[ResourceId, List[ResourceId]]) -> List[ResourceId]:
    """Extrai um ciclo do subgrafo residual (nós que o Kahn não liberou)."""
    remaining = set(nodes)
    visiting: Dict[ResourceId, int] = {}
    done: Set[ResourceId] = set()

    for start in nodes:
        if start in done:
            continue
        path: List[ResourceId] = []
        stack: List[Tuple[ResourceId, int]] = [(start, 0)]
        while stack:
            node, idx = stack.pop()
            if idx == 0:
                if node in visiting:
                    return path[visiting[node]:]
                if node in done:
                    continue
                visiting[node] = len(path)
                path.append(node)
            children = [c for c in succs.get(node, []) if c in remaining]
            if idx < len(children):
                stack.append((node, idx + 1))
                stack.append((children[idx], 0))
            else:
                visiting.pop(node, None)
                path.pop()
                done.add(node)

    # inalcançável quando há nós residuais; mantém o erro informativo
    return list(nodes)


def plan_order(
    ids: Sequence[ResourceId],
    edges: Iterable[Tuple[ResourceId, ResourceId]],
) -> List[ResourceId]:
    """
    Produz a ordem topológica determinística de `ids`.

    Args:
        ids (Sequence[ResourceId]): Resources na ordem de declaração.
        edges (Iterable[Tuple[ResourceId, ResourceId]]): Pares (before, after).

    Returns:
        List[ResourceId]: Ordem de aplicação.

    Raises:
        UnresolvedReferenceError: Se uma aresta referencia Resource ausente.
        CycleDetectedError: Se houver ciclo; `members` contém o ciclo.
    """
    position: Dict[ResourceId, int] = {rid: i for i, rid in enumerate(ids)}
    incoming: Dict[ResourceId, int] = {rid: 0 for rid in ids}
    succs: Dict[ResourceId, List[ResourceId]] = {rid: [] for rid in ids}

    seen_pairs: Set[Tuple[ResourceId, ResourceId]] = set()
    for before, after in edges:
        for end in (before, after):
            if end not in position:
                raise UnresolvedReferenceError(end)
        if (before, after) in seen_pairs:
            continue
        seen_pairs.add((before, after))
        succs[before].append(after)
        incoming[after] += 1

    ready: List[Tuple[int, ResourceId]] = [(position[rid], rid) for rid in ids if incoming[rid] == 0]
    heapq.heapify(ready)
    order: List[ResourceId] = []

    while ready:
        _, rid = heapq.heappop(ready)
        order.append(rid)
        for child in succs[rid]:
            incoming[child] -= 1
            if incoming[child] == 0:
                heapq.heappush(ready, (position[child], child))

    if len(order) != len(ids):
        placed = set(order)
        residual = [rid for rid in ids if rid not in placed]
        raise CycleDetectedError(_find_cycle(residual, succs))

    return order


def check_order(order: Sequence[ResourceId], edges: Iterable[Tuple[ResourceId, ResourceId]]) -> Optional[Tuple[ResourceId, ResourceId]]:
    """Retorna a primeira aresta violada por `order`, ou None."""
    index = {rid: i for i, rid in enumerate(order)}
    for before, after in edges:
        if index[before] >= index[after]:
            return before, after
    return None

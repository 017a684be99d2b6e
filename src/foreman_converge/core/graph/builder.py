# src/foreman_converge/core/graph/builder.py
"""
Graph Builder — de declarações a um grafo validado e ordenado.

Este módulo monta o `Graph` a partir de uma lista de `Declaration`,
aplicando, nesta ordem:

    1. filtro por condição (`when`) sobre os parâmetros da run
    2. unicidade de identidade (`DuplicateIdentityError`)
    3. referências implícitas `${kind[title]}` → arestas de ordenação e
       substituição do valor; interpolação de `${param}`
    4. instanciação do tipo via `KindRegistry`
    5. arestas explícitas (require, before, notify, subscribe)
    6. autorequire (diretório pai, usuário dono, pacote do serviço)
    7. deduplicação de arestas e ordenação topológica (ciclo → erro)

Decisões arquiteturais:
    - Qualquer erro estrutural é fatal e ocorre antes de qualquer apply
    - Autorequire nunca referencia Resources não declarados e é ignorado
      quando já existe relação explícita no sentido oposto
    - Um par com aresta de refresh e de ordenação mantém apenas a de refresh

Limites explícitos:
    - Não executa Resources
    - Não interage com o host
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from foreman_converge.core.resource.registry import KindRegistry, ResourceFactory, ResourceRegistry
from foreman_converge.core.resource.types import ResourceId

from .declarations import Declaration
from .errors import (
    DuplicateIdentityError,
    GraphError,
    InvalidDeclarationError,
    UnresolvedReferenceError,
)
from .graph import Edge, EdgeKind, Graph
from .planner import plan_order
from .references import find_references, render_params, substitute_references


KindsLike = Union[KindRegistry, Mapping[str, ResourceFactory], None]


def _resolve_kinds(kinds: KindsLike) -> KindRegistry:
    if kinds is None:
        # tipos concretos vivem fora do core
        from foreman_converge.resources import default_kinds

        return default_kinds()
    if isinstance(kinds, KindRegistry):
        return kinds
    return KindRegistry(kinds)


def _dedupe(edges: Iterable[Edge]) -> List[Edge]:
    by_pair: Dict[Tuple[ResourceId, ResourceId], Edge] = {}
    for edge in edges:
        pair = (edge.before, edge.after)
        known = by_pair.get(pair)
        if known is None:
            by_pair[pair] = edge
        elif edge.kind is EdgeKind.REFRESH and known.kind is EdgeKind.ORDERING:
            by_pair[pair] = edge
    return list(by_pair.values())


def _explicit_edges(decl: Declaration, declared: Set[ResourceId]) -> List[Edge]:
    rid = decl.id
    out: List[Edge] = []
    relations = (
        ("require", EdgeKind.ORDERING, False),
        ("before", EdgeKind.ORDERING, True),
        ("notify", EdgeKind.REFRESH, True),
        ("subscribe", EdgeKind.REFRESH, False),
    )
    for name, kind, outgoing in relations:
        for ref in getattr(decl, name):
            if ref not in declared:
                raise UnresolvedReferenceError(ref, referrer=rid, via=name)
            if outgoing:
                out.append(Edge(before=rid, after=ref, kind=kind, source=name))
            else:
                out.append(Edge(before=ref, after=rid, kind=kind, source=name))
    return out


def build_graph(
    declarations: Iterable[Declaration],
    *,
    params: Optional[Mapping[str, Any]] = None,
    kinds: KindsLike = None,
) -> Graph:
    """
    Constrói o grafo de Resources a partir das declarações.

    Args:
        declarations (Iterable[Declaration]): Declarações em ordem.
        params (Optional[Mapping[str, Any]]): Parâmetros da run, usados em
            `when` e na interpolação `${param}`.
        kinds (KindsLike): Registro de tipos; None usa os tipos padrão.

    Returns:
        Graph: Grafo validado, com `order` topológica determinística.

    Raises:
        DuplicateIdentityError: Identidade declarada duas vezes.
        UnresolvedReferenceError: Referência a identidade não declarada.
        CycleDetectedError: Ciclo no grafo.
        UnknownResourceKindError: Tipo não registrado.
        InvalidDeclarationError: Atributos rejeitados pelo tipo.
    """
    params = dict(params or {})
    registry_kinds = _resolve_kinds(kinds)

    active = [d for d in declarations if d.enabled_for(params)]

    declared: Dict[ResourceId, Declaration] = {}
    for decl in active:
        if decl.id in declared:
            raise DuplicateIdentityError(decl.id)
        declared[decl.id] = decl

    edges: List[Edge] = []
    registry = ResourceRegistry()

    for decl in active:
        for ref in find_references(decl.attributes):
            if ref not in declared:
                raise UnresolvedReferenceError(ref, referrer=decl.id, via="attribute reference")
            edges.append(Edge(before=ref, after=decl.id, kind=EdgeKind.ORDERING, source="reference"))

        # `$` do título é escapado para não ser relido como parâmetro
        attributes = substitute_references(decl.attributes, lambda rid: rid.title.replace("$", "$$"))
        attributes = render_params(attributes, params)

        try:
            resource = registry_kinds.create(decl.kind, decl.title, attributes)
        except GraphError:
            raise
        except (TypeError, ValueError) as e:
            raise InvalidDeclarationError(f"{decl.id}: {e}") from e

        if resource.id != decl.id:
            raise InvalidDeclarationError(f"{decl.id}: factory produced {resource.id}")
        registry.add(resource)

    for decl in active:
        edges.extend(_explicit_edges(decl, set(declared)))

    pairs = {(e.before, e.after) for e in edges}
    for resource in registry.list():
        autorequires = getattr(resource, "autorequires", None)
        if autorequires is None:
            continue
        for ref in autorequires():
            if ref == resource.id or ref not in registry:
                continue
            if (resource.id, ref) in pairs:
                continue
            edges.append(Edge(before=ref, after=resource.id, kind=EdgeKind.ORDERING, source="autorequire"))

    edges = _dedupe(edges)
    order = plan_order(registry.ids(), [(e.before, e.after) for e in edges])
    return Graph(registry.list(), edges, order)

# src/foreman_converge/core/resource/registry.py
"""
Registros estruturais de Resources.

Este módulo define dois registros usados pelo Graph Builder antes de
qualquer planejamento ou convergência:

    - `ResourceRegistry`: registra Resources instanciados, garantindo
      unicidade de identidade e preservando a ordem de declaração
      (usada como critério de desempate da ordenação topológica)
    - `KindRegistry`: associa nomes de tipo (`file`, `package`, ...) às
      fábricas que instanciam Resources a partir de título e atributos

Decisões arquiteturais:
    - Identidade duplicada é erro fatal de build, levantado no registro
    - A ordem de registro é mantida separadamente do armazenamento
    - Tipos desconhecidos são rejeitados no build, nunca no apply

Limites explícitos:
    - Não resolve dependências
    - Não executa Resources
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from foreman_converge.core.graph.errors import DuplicateIdentityError, UnknownResourceKindError

from .resource import Resource
from .types import ResourceId


ResourceFactory = Callable[[str, Mapping[str, Any]], Resource]


@dataclass
class ResourceRegistry:
    """
    Registro canônico de Resources por identidade.

    Invariantes:
        - Cada `ResourceId` aparece no máximo uma vez
        - `list()` reflete exatamente a ordem de registro
    """

    _resources: Dict[ResourceId, Resource] = field(default_factory=dict, init=False, repr=False)
    _order: List[ResourceId] = field(default_factory=list, init=False, repr=False)

    def add(self, resource: Resource) -> None:
        rid = getattr(resource, "id", None)
        if not isinstance(rid, ResourceId):
            raise TypeError("resource.id must be a ResourceId")

        if rid in self._resources:
            raise DuplicateIdentityError(rid)

        self._resources[rid] = resource
        self._order.append(rid)

    def __contains__(self, rid: object) -> bool:
        return rid in self._resources

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self.list())

    def get(self, rid: ResourceId) -> Resource:
        return self._resources[rid]

    def ids(self) -> List[ResourceId]:
        return list(self._order)

    def list(self) -> List[Resource]:
        return [self._resources[rid] for rid in self._order]


class KindRegistry:
    """Associa nomes de tipo às fábricas de Resource."""

    def __init__(self, kinds: Optional[Mapping[str, ResourceFactory]] = None):
        self._kinds: Dict[str, ResourceFactory] = {}
        for name, factory in (kinds or {}).items():
            self.register(name, factory)

    def register(self, name: str, factory: ResourceFactory) -> None:
        key = name.strip().lower()
        if key in self._kinds:
            raise ValueError(f"Resource kind already registered: {key}")
        self._kinds[key] = factory

    def names(self) -> List[str]:
        return sorted(self._kinds)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._kinds

    def create(self, kind: str, title: str, attributes: Mapping[str, Any]) -> Resource:
        factory = self._kinds.get(kind.lower())
        if factory is None:
            raise UnknownResourceKindError(kind, known=self.names())
        return factory(title, attributes)

# src/foreman_converge/core/resource/__init__.py
"""
# Resource Core — Foreman Converge

Este pacote define os **contratos canônicos** e as **estruturas
fundamentais** de um Resource.

## Componentes

- **types**
  - `ResourceId`: identidade `kind[title]`
  - `Outcome`: resultados finais (unchanged, changed, failed, skipped)
  - `ResourceResult`: resultado imutável de um Resource na run

- **resource**
  - `Resource` (Protocol): capacidades fixas `probe`/`changes`/`apply`/`refresh`
  - `BaseResource`: base para tipos concretos

- **context**
  - `NodeContext`: contexto imutável passado a probe/apply/refresh

- **registry**
  - `ResourceRegistry`: unicidade de identidade e ordem de declaração
  - `KindRegistry`: fábricas de Resource por tipo

## Invariantes

- Cada Resource possui identidade única no grafo
- `apply` é idempotente
- Resources não leem estado global; apenas o `NodeContext`
"""

from .context import NodeContext
from .registry import KindRegistry, ResourceRegistry
from .resource import ABSENT, BaseResource, Resource
from .types import Outcome, ResourceId, ResourceResult

__all__ = [
    "ABSENT",
    "BaseResource",
    "KindRegistry",
    "NodeContext",
    "Outcome",
    "Resource",
    "ResourceId",
    "ResourceRegistry",
    "ResourceResult",
]

# src/foreman_converge/core/resource/resource.py
"""
Contrato canônico de Resource do Foreman Converge.

Um Resource é a menor unidade declarativa de estado desejado: um alvo
nomeado (arquivo, pacote, serviço, usuário, boolean...) com atributos
desejados e um par fixo de capacidades `probe`/`apply`, mais um `refresh`
opcional acionado por notificações.

Responsabilidades de um Resource:
    - ler o estado atual do alvo (`probe`) via `NodeContext`
    - calcular as diferenças em relação ao estado desejado (`changes`)
    - executar a transição atual -> desejado (`apply`)
    - executar a ação secundária de refresh (`refresh`), quando houver

Princípios fundamentais:
    - Resources não conhecem o Engine nem o grafo
    - Resources não controlam ordem de execução
    - `apply` é idempotente: após um apply bem-sucedido, um novo `probe`
      não reporta diferenças
    - Falhas são sinalizadas por exceção (`ProbeFailed`, `ApplyFailed`,
      `RefreshFailed`), nunca silenciadas

Limites explícitos:
    - Não decide políticas de execução (noop, skip, timeout)
    - Não registra eventos de rastreabilidade
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

from .context import NodeContext
from .types import ResourceId


ABSENT = ("absent", "purged")


@runtime_checkable
class Resource(Protocol):
    """
    Contrato mínimo que o Engine exige de um Resource.

    A conformidade é verificada por duck typing (`@runtime_checkable`);
    herdar de `BaseResource` é conveniente, mas não obrigatório.

    Atributos obrigatórios:
        - id: identidade única (`ResourceId`)
        - desired: atributos desejados já resolvidos (sem referências)
    """
    id: ResourceId
    desired: Mapping[str, Any]

    def probe(self, ctx: NodeContext) -> Dict[str, Any]:
        """Lê o estado atual do alvo."""
        ...

    def changes(self, current: Mapping[str, Any]) -> Dict[str, Tuple[Any, Any]]:
        """Retorna `{propriedade: (atual, desejado)}` para o que difere."""
        ...

    def apply(self, ctx: NodeContext, current: Mapping[str, Any], changes: Mapping[str, Tuple[Any, Any]]) -> None:
        """Executa a transição atual -> desejado."""
        ...

    def refresh(self, ctx: NodeContext) -> None:
        """Executa a ação secundária (ex.: restart)."""
        ...


class BaseResource:
    """
    Implementação base para tipos concretos de Resource.

    Subclasses definem:
        - `kind`: nome do tipo (ex.: "package")
        - `properties`: propriedades comparadas entre probe e desejado
        - `parameters`: atributos aceitos que não são comparados
          (ex.: `persistent`, `system`)
        - `defaults`: valores aplicados quando o atributo não é declarado
        - `probe`/`apply` e, opcionalmente, `refresh` e `autorequires`

    A comparação só considera propriedades efetivamente declaradas (ou
    com default); propriedades omitidas não são gerenciadas.
    """

    kind: str = ""
    properties: Tuple[str, ...] = ()
    parameters: Tuple[str, ...] = ()
    defaults: Mapping[str, Any] = {}

    def __init__(self, title: str, attributes: Optional[Mapping[str, Any]] = None):
        self.id = ResourceId(kind=self.kind, title=title)
        self.title = self.id.title
        desired: Dict[str, Any] = dict(self.defaults)
        desired.update(attributes or {})
        unknown = sorted(set(desired) - set(self.properties) - set(self.parameters))
        if unknown:
            raise ValueError(f"{self.id}: unknown attribute(s): {', '.join(unknown)}")
        self.desired = self.normalize(desired)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"

    # -----------------------------
    # Hooks
    # -----------------------------
    def normalize(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        return desired

    def autorequires(self) -> Iterable[ResourceId]:
        return ()

    def insync(self, name: str, current: Any, desired: Any) -> bool:
        return current == desired

    # -----------------------------
    # Contrato
    # -----------------------------
    def changes(self, current: Mapping[str, Any]) -> Dict[str, Tuple[Any, Any]]:
        names = self.properties
        # alvo removido: demais propriedades deixam de ser gerenciadas
        if self.desired.get("ensure") in ABSENT:
            names = ("ensure",)

        diff: Dict[str, Tuple[Any, Any]] = {}
        for name in names:
            if name not in self.desired:
                continue
            want = self.desired[name]
            have = current.get(name)
            if not self.insync(name, have, want):
                diff[name] = (have, want)
        return diff

    def probe(self, ctx: NodeContext) -> Dict[str, Any]:
        raise NotImplementedError

    def apply(self, ctx: NodeContext, current: Mapping[str, Any], changes: Mapping[str, Tuple[Any, Any]]) -> None:
        raise NotImplementedError

    def refresh(self, ctx: NodeContext) -> None:
        return None


def ensure_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]

# src/foreman_converge/core/resource/context.py
"""
Contexto imutável de nó passado a `probe`/`apply`/`refresh`.

Nenhum Resource consulta estado global (fatos do nó, parâmetros, raiz do
filesystem, colaboradores do host). Tudo que um Resource pode ler chega
explicitamente por um `NodeContext`, construído uma vez por run e somente
leitura durante a convergência.

Invariantes:
    - `facts` e `params` são mapeamentos somente leitura
    - `root` é sempre um `Path`
    - O contexto é compartilhável entre workers sem sincronização
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Union

if TYPE_CHECKING:  # pragma: no cover
    from foreman_converge.backends.host import HostBackend


@dataclass(frozen=True)
class NodeContext:
    """
    Contexto explícito do nó alvo da convergência.

    Campos:
        - host: colaborador externo para pacotes, serviços, usuários,
          booleans SELinux e comandos (`HostBackend`)
        - root: raiz sob a qual caminhos de `file`/`directory` são resolvidos
        - facts: fatos do nó (somente leitura)
        - params: parâmetros efetivos da run (somente leitura)
    """

    host: "HostBackend"
    root: Union[str, Path] = Path("/")
    facts: Mapping[str, Any] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root))
        object.__setattr__(self, "facts", MappingProxyType(dict(self.facts)))
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def path(self, title: str) -> Path:
        """Resolve o caminho absoluto de um título sob `root`."""
        return self.root / str(title).lstrip("/")

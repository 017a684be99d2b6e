# src/foreman_converge/core/resource/types.py
"""
Tipos canônicos de Resource do Foreman Converge.

Este módulo define as estruturas e enums fundamentais que padronizam a
comunicação entre Resources, Graph Builder, Engine e rastreabilidade.

Componentes principais:
    - ResourceId     → identidade (kind + title), única no grafo
    - Outcome        → enum de resultados finais (UNCHANGED, CHANGED, FAILED, SKIPPED)
    - ResourceResult → estrutura imutável do resultado de um Resource na run

Princípios fundamentais:
    - Tipos são estáveis e serializáveis
    - Valores são projetados para persistência em Manifest
    - Nenhuma lógica de execução vive neste módulo

Invariantes:
    - A forma textual de uma identidade é sempre `kind[title]`
    - `kind` é normalizado para minúsculas
    - ResourceResult é imutável
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


_REF_RE = re.compile(r"^\s*([A-Za-z][A-Za-z0-9_]*)\[(.+)\]\s*$")


@dataclass(frozen=True, order=True)
class ResourceId:
    """
    Identidade de um Resource: o par (kind, title).

    Dois Resources com a mesma identidade não podem coexistir no grafo.
    A forma textual segue a convenção `kind[title]`, por exemplo
    `package[foreman]` ou `file[/etc/foreman/settings.yaml]`.
    """

    kind: str
    title: str

    def __post_init__(self) -> None:
        if not isinstance(self.kind, str) or not self.kind.strip():
            raise ValueError("resource kind must be a non-empty string")
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValueError("resource title must be a non-empty string")
        object.__setattr__(self, "kind", self.kind.strip().lower())

    def __str__(self) -> str:
        return f"{self.kind}[{self.title}]"

    @classmethod
    def parse(cls, ref: str) -> "ResourceId":
        """Converte `Kind[title]` em ResourceId (kind case-insensitive)."""
        if isinstance(ref, ResourceId):
            return ref
        match = _REF_RE.match(ref) if isinstance(ref, str) else None
        if match is None:
            raise ValueError(f"Invalid resource reference: {ref!r} (expected 'kind[title]')")
        return cls(kind=match.group(1), title=match.group(2))


class Outcome(str, Enum):
    """
    Resultados finais possíveis de um Resource em uma run.

    Estados definidos:
        - UNCHANGED: o estado atual já era o desejado (nenhum apply)
        - CHANGED:   o apply levou o alvo ao estado desejado
        - FAILED:    probe, apply ou refresh falhou
        - SKIPPED:   não visitado (ancestral falhou, timeout, desabilitado)

    Os valores são strings para facilitar serialização no Manifest.
    """
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ResourceResult:
    """
    Resultado imutável de um Resource em uma run.

    Campos:
        - resource_id: forma textual da identidade (`kind[title]`)
        - kind: tipo do Resource
        - outcome: resultado final
        - summary: resumo textual
        - changes: propriedades alteradas, `{prop: {"from": atual, "to": desejado}}`
        - warnings: avisos não fatais
        - refreshed: True quando um refresh foi executado com sucesso
        - payload: dados adicionais (ex.: `error`, `skip_reason`, `would_change`)
    """
    resource_id: str
    kind: str
    outcome: Outcome
    summary: str
    changes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    refreshed: bool = False
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_id": self.resource_id,
            "kind": self.kind,
            "outcome": self.outcome.value,
            "summary": self.summary,
            "changes": {k: dict(v) for k, v in self.changes.items()},
            "warnings": list(self.warnings),
            "refreshed": self.refreshed,
            "payload": dict(self.payload),
        }

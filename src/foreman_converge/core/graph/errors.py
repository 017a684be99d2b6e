# src/foreman_converge/core/graph/errors.py
"""
Erros fatais de build do grafo de Resources.

Todos os erros deste módulo são levantados antes de qualquer `probe` ou
`apply`: um grafo inválido nunca produz uma run parcial.

Hierarquia:
    - GraphError
        - DuplicateIdentityError    → mesma identidade declarada duas vezes
        - UnresolvedReferenceError  → referência a identidade não declarada
        - CycleDetectedError        → o conjunto de arestas contém um ciclo
        - UnknownResourceKindError  → tipo de Resource não registrado
        - InvalidDeclarationError   → declaração estruturalmente inválida
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional


class GraphError(ValueError):
    """Base para erros estruturais do grafo (fatais em tempo de build)."""


class DuplicateIdentityError(GraphError):
    """
    A mesma identidade (`kind[title]`) foi declarada mais de uma vez.

    Nenhuma tentativa de renomear ou mesclar declarações é feita.
    """

    def __init__(self, identity: Any):
        self.identity = str(identity)
        super().__init__(f"Duplicate resource identity: {self.identity}")


class UnresolvedReferenceError(GraphError):
    """
    Uma referência (explícita ou embutida em atributo) aponta para uma
    identidade que não foi declarada (ou foi descartada por `when`).
    """

    def __init__(self, reference: Any, *, referrer: Any = None, via: str = "reference"):
        self.reference = str(reference)
        self.referrer = None if referrer is None else str(referrer)
        self.via = via
        where = f" in {self.referrer}" if self.referrer else ""
        super().__init__(f"Unresolved {via} to {self.reference}{where}")


class CycleDetectedError(GraphError):
    """
    O grafo contém um ciclo; `members` lista os Resources do ciclo na ordem
    em que as arestas são percorridas (o primeiro se repete ao final na
    mensagem).
    """

    def __init__(self, members: Iterable[Any]):
        self.members: List[str] = [str(m) for m in members]
        chain = " -> ".join(self.members + self.members[:1])
        super().__init__(f"Cycle detected in resource graph: {chain}")


class UnknownResourceKindError(GraphError):
    def __init__(self, kind: str, known: Optional[Iterable[str]] = None):
        self.kind = kind
        self.known = sorted(known or [])
        super().__init__(
            f"Unknown resource kind: {kind!r} (known: {', '.join(self.known) or '<none>'})"
        )


class InvalidDeclarationError(GraphError):
    """Declaração malformada (título ausente, referência inválida, atributo desconhecido)."""

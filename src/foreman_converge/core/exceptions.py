"""
Foreman Converge — Canonical Exceptions (v1)

Este módulo define exceções tipadas levantadas por Resources e pelo Engine
durante a convergência.

Objetivo:
- Permitir que tipos de Resource sinalizem falhas semânticas (probe/apply/refresh)
- Facilitar o mapeamento determinístico para ConvergeErrorPayload
- Evitar RuntimeError genérico nas fronteiras com o host

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Falhas de probe/apply são fatais apenas para a subárvore do Resource.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ConvergeException(Exception):
    """Base class para exceções internas do Foreman Converge.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Resource
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProbeFailed(ConvergeException):
    """O estado atual do alvo não pôde ser lido."""


@dataclass(frozen=True)
class ApplyFailed(ConvergeException):
    """A transição atual -> desejado não pôde ser concluída."""


@dataclass(frozen=True)
class RefreshFailed(ConvergeException):
    """A ação de refresh (ex.: restart) falhou."""


# ---------------------------------------------------------------------------
# Engine / Configuração
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngineConfigurationError(ConvergeException):
    """Configuração inválida ou inconsistente para a convergência."""

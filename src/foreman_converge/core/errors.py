"""
Foreman Converge — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros de execução do Foreman Converge.
Falhas de probe, apply e refresh são artefatos da run e fazem parte do
RunReport e do Manifest, devendo ser:

- explícitas
- serializáveis
- rastreáveis
- acionáveis

Erros de build do grafo (identidade duplicada, referência não resolvida,
ciclo) não passam por aqui: são exceções fatais levantadas antes de qualquer
apply (ver `core.graph.errors`).
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConvergeErrorPayload:
    """
    Payload canônico de erro de um Resource.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Resource
RESOURCE_PROBE_FAILED = "RESOURCE_PROBE_FAILED"
RESOURCE_APPLY_FAILED = "RESOURCE_APPLY_FAILED"
RESOURCE_REFRESH_FAILED = "RESOURCE_REFRESH_FAILED"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def probe_failed(
    *,
    resource_id: str,
    reason: str,
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Verifique se o colaborador do host (pacotes, serviços, SELinux) está acessível a partir do nó.",
) -> ConvergeErrorPayload:
    return ConvergeErrorPayload(
        type=RESOURCE_PROBE_FAILED,
        message=f"Falha ao ler o estado atual: {reason}",
        details={"resource": resource_id, **(details or {})},
        hint=hint,
    )


def apply_failed(
    *,
    resource_id: str,
    reason: str,
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Corrija a causa no host ou ajuste a declaração do Resource; nenhuma nova tentativa é feita nesta run.",
) -> ConvergeErrorPayload:
    return ConvergeErrorPayload(
        type=RESOURCE_APPLY_FAILED,
        message=f"Falha ao aplicar o estado desejado: {reason}",
        details={"resource": resource_id, **(details or {})},
        hint=hint,
    )


def refresh_failed(
    *,
    resource_id: str,
    reason: str,
    sources: Optional[list] = None,
    hint: str = "O estado foi aplicado, mas o refresh (ex.: restart) falhou. Verifique o serviço no host.",
) -> ConvergeErrorPayload:
    return ConvergeErrorPayload(
        type=RESOURCE_REFRESH_FAILED,
        message=f"Falha ao executar refresh: {reason}",
        details={"resource": resource_id, "sources": list(sources or [])},
        hint=hint,
    )


def engine_execution_error(
    *,
    resource_id: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Erro inesperado no Resource. Verifique a implementação do tipo e o estado do host.",
) -> ConvergeErrorPayload:
    return ConvergeErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a convergência",
        details={
            "resource": resource_id,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )


def engine_configuration_error(
    *,
    message: str = "Configuração inválida para a convergência",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Revise a seção `engine` da configuração antes de reexecutar.",
) -> ConvergeErrorPayload:
    return ConvergeErrorPayload(
        type=ENGINE_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
    )

# src/foreman_converge/core/traceability/__init__.py
"""
Pacote de rastreabilidade do Foreman Converge — Manifest v1.

API pública exposta:
    - RunManifest         → estrutura canônica do Manifest
    - create_manifest     → criação explícita do Manifest
    - add_event           → registro explícito de eventos no Event Log
    - resource_started    → marca início de um Resource
    - resource_finished   → registra conclusão (unchanged/changed)
    - resource_failed     → registra falha com payload de erro
    - resource_skipped    → registra Resource não visitado e o motivo
    - resource_refreshed  → registra refresh executado
    - run_finished        → registra o resumo final da run
    - save_manifest       → persistência em JSON
    - load_manifest       → restauração determinística

Invariantes:
    - O Manifest inicia com `resources` e `events` vazios
    - Eventos nunca são reordenados automaticamente
"""

from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    load_manifest,
    resource_failed,
    resource_finished,
    resource_refreshed,
    resource_skipped,
    resource_started,
    run_finished,
    save_manifest,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "load_manifest",
    "resource_failed",
    "resource_finished",
    "resource_refreshed",
    "resource_skipped",
    "resource_started",
    "run_finished",
    "save_manifest",
]

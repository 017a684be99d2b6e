# src/foreman_converge/core/traceability/manifest.py
"""
Manifest v1 — rastreabilidade de runs de convergência.

Este módulo define a estrutura e as operações canônicas do Manifest, o
artefato que consolida, de forma determinística e auditável:
    - metadados da run (run_id, versão, início e fim)
    - hashes das entradas (configuração efetiva e catálogo)
    - estado incremental de cada Resource
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real das chamadas
    - O Manifest é serializável e reconstruível (round-trip)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico (chaves ordenadas)

Limites explícitos:
    - Não executa Resources
    - Não decide políticas de execução (noop, skip, timeout)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union


def _utc(dt: datetime) -> datetime:
    """Normaliza um timestamp para UTC timezone-aware (naive é assumido UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    """Duração em milissegundos, truncada em zero."""
    return max(0, int((_utc(end) - _utc(start)).total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Registro de uma run de convergência.

    Campos:
        - run: metadados da execução (run_id, started_at, version, ...)
        - inputs: hashes da configuração e do catálogo
        - resources: estado por resource_id (`kind[title]`)
        - events: Event Log ordenado

    Invariantes:
        - `resources` é sempre um dicionário indexado por resource_id
        - `events` é sempre uma lista ordenada
        - A estrutura completa é serializável em JSON
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    resources: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável; alterações no retorno não afetam o Manifest."""
        return json.loads(json.dumps(
            {
                "run": self.run,
                "inputs": self.inputs,
                "resources": self.resources,
                "events": self.events,
            },
            default=str,
        ))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        """Reconstrução permissiva: campos ausentes viram estruturas vazias."""
        return cls(
            run=dict(data.get("run", {}) or {}),
            inputs=dict(data.get("inputs", {}) or {}),
            resources={k: dict(v) for k, v in (data.get("resources", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    version: str,
    config_hash: str,
    catalog_hash: str,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    ⚠️ Importante: esta função **não emite eventos**. O Event Log inicia
    vazio e só é preenchido por chamadas explícitas da API.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "version": version,
        },
        inputs={
            "config_hash": config_hash,
            "catalog_hash": catalog_hash,
        },
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    resource_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log.

    Cada chamada adiciona exatamente um evento; eventos não são
    reordenados nem deduplicados.
    """
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if resource_id is not None:
        ev["resource_id"] = resource_id
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def resource_started(manifest: RunManifest, *, resource_id: str, kind: str, ts: datetime) -> None:
    """Marca o Resource como `running` e registra `resource_started`."""
    entry = manifest.resources.setdefault(resource_id, {})
    entry.update(
        {
            "resource_id": resource_id,
            "kind": kind,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="resource_started", ts=ts, resource_id=resource_id, payload={"kind": kind})


def resource_finished(manifest: RunManifest, *, resource_id: str, ts: datetime, result: Dict[str, Any]) -> None:
    """
    Registra a conclusão de um Resource (unchanged/changed).

    `result` segue `ResourceResult.to_dict()`; a duração é calculada a
    partir de `started_at` quando disponível.

    Args:
        manifest (RunManifest): Manifest a ser atualizado.
        resource_id (str): Identidade textual do Resource.
        ts (datetime): Timestamp de conclusão.
        result (Dict[str, Any]): Resultado serializado.
    """
    entry = manifest.resources.setdefault(resource_id, {"resource_id": resource_id})
    started = entry.get("started_at")
    started_dt = datetime.fromisoformat(started) if started else ts

    outcome = result.get("outcome", "unchanged")
    entry.update(
        {
            "kind": result.get("kind", entry.get("kind")),
            "status": outcome,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "summary": result.get("summary"),
            "changes": result.get("changes", {}) or {},
            "warnings": result.get("warnings", []) or [],
        }
    )
    add_event(
        manifest,
        event_type="resource_finished",
        ts=ts,
        resource_id=resource_id,
        payload={"outcome": outcome, "duration_ms": entry["duration_ms"]},
    )


def resource_failed(manifest: RunManifest, *, resource_id: str, ts: datetime, error: Dict[str, Any]) -> None:
    """Marca o Resource como `failed` e associa o payload de erro."""
    entry = manifest.resources.setdefault(resource_id, {"resource_id": resource_id})
    entry.update({"status": "failed", "finished_at": _iso(ts), "error": error})
    add_event(manifest, event_type="resource_failed", ts=ts, resource_id=resource_id, payload={"error": error})


def resource_skipped(manifest: RunManifest, *, resource_id: str, kind: str, ts: datetime, reason: str) -> None:
    entry = manifest.resources.setdefault(resource_id, {"resource_id": resource_id})
    entry.update({"kind": kind, "status": "skipped", "finished_at": _iso(ts), "skip_reason": reason})
    add_event(manifest, event_type="resource_skipped", ts=ts, resource_id=resource_id, payload={"reason": reason})


def resource_refreshed(
    manifest: RunManifest,
    *,
    resource_id: str,
    ts: datetime,
    sources: Sequence[str],
) -> None:
    """Registra um refresh executado e os Resources que o provocaram."""
    entry = manifest.resources.setdefault(resource_id, {"resource_id": resource_id})
    entry.update({"refreshed": True, "refreshed_by": list(sources)})
    add_event(
        manifest,
        event_type="resource_refreshed",
        ts=ts,
        resource_id=resource_id,
        payload={"sources": list(sources)},
    )


def run_finished(manifest: RunManifest, *, ts: datetime, summary: Dict[str, Any]) -> None:
    manifest.run.update({"finished_at": _iso(ts), "summary": dict(summary)})
    add_event(manifest, event_type="run_finished", ts=ts, payload=dict(summary))


def save_manifest(manifest: Union[RunManifest, Dict[str, Any]], path: Path) -> None:
    """Persiste o Manifest em JSON determinístico (diretórios criados sob demanda)."""
    data = manifest.to_dict() if isinstance(manifest, RunManifest) else manifest
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_manifest(path: Path) -> RunManifest:
    """
    Carrega um Manifest persistido.

    Raises:
        OSError: Em caso de falha de leitura do arquivo.
        json.JSONDecodeError: Em caso de JSON inválido.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)

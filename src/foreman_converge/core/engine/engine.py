# src/foreman_converge/core/engine/engine.py
"""
Engine de convergência do Foreman Converge.

O Engine percorre o grafo em ordem topológica e, para cada Resource:
probe → comparação com o estado desejado → apply somente se diferente.
Depois do passe completo, drena a fila de refresh.

Políticas:
- Falha de probe/apply é fatal apenas para a subárvore: descendentes
  ficam SKIPPED, ramos sem relação continuam.
- Resources desabilitados por config (`resources.<id>.enabled: false`)
  ficam SKIPPED, assim como seus descendentes.
- `engine.noop`: probe e comparação ocorrem, apply e refresh não; o que
  mudaria é reportado em `payload["would_change"]`.
- `engine.timeout_s`: Resources ainda não iniciados quando o prazo vence
  ficam SKIPPED (motivo `timeout`); um apply em andamento nunca é
  interrompido.
- `engine.workers > 1`: Resources sem relação de dependência rodam em um
  pool limitado; um Resource só é submetido quando todos os seus
  predecessores têm resultado final.
- Sem retries: um Resource FAILED permanece FAILED na run.

Guardrails:
- Exceções de Resources são convertidas em ConvergeErrorPayload
  (serializável), gravado em `ResourceResult.payload["error"]`.
- Apenas a thread principal escreve no RunContext e no Manifest.
"""

from __future__ import annotations

import heapq
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from foreman_converge.core.errors import (
    ConvergeErrorPayload,
    apply_failed,
    engine_execution_error,
    probe_failed,
    refresh_failed,
)
from foreman_converge.core.exceptions import (
    ApplyFailed,
    EngineConfigurationError,
    ProbeFailed,
    RefreshFailed,
)
from foreman_converge.core.graph.graph import Graph
from foreman_converge.core.resource.context import NodeContext
from foreman_converge.core.resource.types import Outcome, ResourceId, ResourceResult
from foreman_converge.core.run_context import RunContext
from foreman_converge.core.traceability import manifest as trace

from .refresh import RefreshQueue
from .report import RunReport


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format_changes(changes: Mapping[str, Tuple[Any, Any]]) -> Dict[str, Dict[str, Any]]:
    return {name: {"from": have, "to": want} for name, (have, want) in changes.items()}


class ConvergenceEngine:
    """Engine canônico de convergência (passe topológico + refresh)."""

    def __init__(self, *, graph: Graph, node: NodeContext, ctx: RunContext):
        self.graph = graph
        self.node = node
        self.ctx = ctx

    # ------------------------------------------------------------------
    # Configuração
    # ------------------------------------------------------------------
    def _engine_cfg(self) -> Dict[str, Any]:
        return self.ctx.section("engine")

    def _workers(self) -> int:
        workers = self._engine_cfg().get("workers", 1)
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise EngineConfigurationError(
                message="engine.workers deve ser inteiro >= 1",
                details={"workers": workers},
            )
        return workers

    def _timeout(self) -> Optional[float]:
        timeout = self._engine_cfg().get("timeout_s")
        if timeout is None:
            return None
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout < 0:
            raise EngineConfigurationError(
                message="engine.timeout_s deve ser numérico >= 0",
                details={"timeout_s": timeout},
            )
        return float(timeout)

    def _noop(self) -> bool:
        return bool(self._engine_cfg().get("noop", False))

    def _refresh_enabled(self) -> bool:
        return bool(self._engine_cfg().get("refresh", True))

    def _is_enabled(self, rid: ResourceId) -> bool:
        resource_cfg = self.ctx.section("resources").get(str(rid)) or {}
        return bool(resource_cfg.get("enabled", True))

    # ------------------------------------------------------------------
    # Resultados
    # ------------------------------------------------------------------
    def _mk_result(
        self,
        rid: ResourceId,
        outcome: Outcome,
        summary: str,
        *,
        changes: Optional[Dict[str, Dict[str, Any]]] = None,
        warnings: Optional[List[str]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> ResourceResult:
        return ResourceResult(
            resource_id=str(rid),
            kind=rid.kind,
            outcome=outcome,
            summary=summary,
            changes=dict(changes or {}),
            warnings=list(warnings or []),
            payload=dict(payload or {}),
        )

    def _failure(self, rid: ResourceId, error: ConvergeErrorPayload) -> ResourceResult:
        return self._mk_result(rid, Outcome.FAILED, error.message, payload={"error": error.to_dict()})

    def _exception_to_error(self, rid: ResourceId, exc: Exception, phase: str) -> ConvergeErrorPayload:
        # hint do tipo de Resource prevalece sobre o padrão da fábrica
        extra = {"hint": exc.hint} if getattr(exc, "hint", None) else {}
        if isinstance(exc, ProbeFailed):
            return probe_failed(resource_id=str(rid), reason=exc.message, details=exc.details, **extra)
        if isinstance(exc, ApplyFailed):
            return apply_failed(resource_id=str(rid), reason=exc.message, details=exc.details, **extra)
        if isinstance(exc, RefreshFailed):
            return refresh_failed(
                resource_id=str(rid), reason=exc.message, sources=exc.details.get("sources"), **extra
            )
        return engine_execution_error(
            resource_id=str(rid),
            exc_type=exc.__class__.__name__,
            exc_message=f"{phase}: {exc}",
        )

    # ------------------------------------------------------------------
    # Visita de um Resource (pode rodar em worker)
    # ------------------------------------------------------------------
    def _visit(self, rid: ResourceId, noop: bool) -> ResourceResult:
        resource = self.graph.get(rid)

        try:
            current = resource.probe(self.node)
            if not isinstance(current, Mapping):
                raise TypeError("Resource.probe(ctx) must return a mapping")
            changes = resource.changes(current)
        except Exception as e:
            return self._failure(rid, self._exception_to_error(rid, e, "probe"))

        if not changes:
            return self._mk_result(rid, Outcome.UNCHANGED, "in sync")

        formatted = _format_changes(changes)
        names = ", ".join(formatted)

        if noop:
            return self._mk_result(
                rid,
                Outcome.UNCHANGED,
                f"noop: would change {names}",
                warnings=[f"noop: {names} out of sync"],
                payload={"would_change": formatted},
            )

        try:
            resource.apply(self.node, current, changes)
        except Exception as e:
            return self._failure(rid, self._exception_to_error(rid, e, "apply"))

        return self._mk_result(rid, Outcome.CHANGED, f"changed {names}", changes=formatted)

    # ------------------------------------------------------------------
    # Decisões antes da visita (thread principal)
    # ------------------------------------------------------------------
    def _precheck(
        self,
        rid: ResourceId,
        results: Dict[ResourceId, ResourceResult],
        deadline: Optional[float],
    ) -> Optional[ResourceResult]:
        if deadline is not None and time.monotonic() >= deadline:
            return self._mk_result(rid, Outcome.SKIPPED, "skipped: run timeout", payload={"skip_reason": "timeout"})

        if not self._is_enabled(rid):
            return self._mk_result(rid, Outcome.SKIPPED, "skipped: disabled by config", payload={"skip_reason": "disabled"})

        for pred in self.graph.predecessors(rid):
            pred_result = results.get(pred)
            if pred_result is None:
                continue
            if pred_result.outcome in (Outcome.FAILED, Outcome.SKIPPED):
                state = pred_result.outcome.value
                return self._mk_result(
                    rid,
                    Outcome.SKIPPED,
                    f"skipped: dependency {pred} {state}",
                    payload={"skip_reason": "dependency", "dependency": str(pred), "dependency_outcome": state},
                )
        return None

    def _started(self, rid: ResourceId) -> None:
        self.ctx.log(resource_id=str(rid), level="DEBUG", message="probing")
        if self.ctx.manifest is not None:
            trace.resource_started(self.ctx.manifest, resource_id=str(rid), kind=rid.kind, ts=_now())

    def _record(
        self,
        rid: ResourceId,
        result: ResourceResult,
        results: Dict[ResourceId, ResourceResult],
        visited: List[ResourceId],
        queue: RefreshQueue,
    ) -> None:
        results[rid] = result
        visited.append(rid)
        sid = str(rid)

        for msg in result.warnings:
            self.ctx.add_warning(resource_id=sid, message=msg)

        level = {"failed": "ERROR", "skipped": "WARNING"}.get(result.outcome.value, "INFO")
        self.ctx.log(resource_id=sid, level=level, message=result.summary, outcome=result.outcome.value)

        m = self.ctx.manifest
        if m is not None:
            ts = _now()
            if result.outcome is Outcome.FAILED:
                trace.resource_failed(m, resource_id=sid, ts=ts, error=result.payload.get("error", {}))
            elif result.outcome is Outcome.SKIPPED:
                trace.resource_skipped(m, resource_id=sid, kind=rid.kind, ts=ts, reason=result.payload.get("skip_reason", ""))
            else:
                trace.resource_finished(m, resource_id=sid, ts=ts, result=result.to_dict())

        if result.outcome is Outcome.CHANGED and self._refresh_enabled():
            for target in self.graph.refresh_targets(rid):
                queue.signal(rid, target)

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------
    def _pass_sequential(self, state: Dict[str, Any]) -> None:
        results, visited, queue = state["results"], state["visited"], state["queue"]
        for rid in self.graph.order:
            skip = self._precheck(rid, results, state["deadline"])
            if skip is not None:
                self._record(rid, skip, results, visited, queue)
                continue
            self._started(rid)
            self._record(rid, self._visit(rid, state["noop"]), results, visited, queue)

    def _pass_concurrent(self, state: Dict[str, Any], workers: int) -> None:
        results, visited, queue = state["results"], state["visited"], state["queue"]
        deadline = state["deadline"]
        graph = self.graph

        waiting = {rid: len(graph.predecessors(rid)) for rid in graph.order}
        ready: List[Tuple[int, ResourceId]] = [(graph.position(rid), rid) for rid, n in waiting.items() if n == 0]
        heapq.heapify(ready)
        running: Dict[Future, ResourceId] = {}

        def _release(rid: ResourceId) -> None:
            for child in graph.successors(rid):
                waiting[child] -= 1
                if waiting[child] == 0:
                    heapq.heappush(ready, (graph.position(child), child))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="converge") as pool:
            while ready or running:
                while ready and len(running) < workers:
                    _, rid = heapq.heappop(ready)
                    skip = self._precheck(rid, results, deadline)
                    if skip is not None:
                        self._record(rid, skip, results, visited, queue)
                        _release(rid)
                        continue
                    self._started(rid)
                    running[pool.submit(self._visit, rid, state["noop"])] = rid

                if not running:
                    continue

                timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
                done, _ = wait(running, timeout=timeout, return_when=FIRST_COMPLETED)
                if not done:
                    # prazo vencido: applys em andamento terminam, nada novo é iniciado
                    done, _ = wait(running, return_when=FIRST_COMPLETED)

                for fut in sorted(done, key=lambda f: graph.position(running[f])):
                    rid = running.pop(fut)
                    self._record(rid, fut.result(), results, visited, queue)
                    _release(rid)

    def _refresh_pass(self, state: Dict[str, Any]) -> List[ResourceId]:
        results: Dict[ResourceId, ResourceResult] = state["results"]
        queue: RefreshQueue = state["queue"]
        deadline = state["deadline"]
        refreshed: List[ResourceId] = []

        for rid, sources in queue.drain(self.graph.order):
            sid = str(rid)
            source_ids = [str(s) for s in sources]
            current = results[rid]

            if current.outcome in (Outcome.FAILED, Outcome.SKIPPED):
                msg = f"refresh not run: resource {current.outcome.value}"
                self.ctx.add_warning(resource_id=sid, message=msg)
                self.ctx.log(resource_id=sid, level="WARNING", message=msg, sources=source_ids)
                continue

            if deadline is not None and time.monotonic() >= deadline:
                msg = "refresh dropped: run timeout"
                self.ctx.add_warning(resource_id=sid, message=msg)
                self.ctx.log(resource_id=sid, level="WARNING", message=msg, sources=source_ids)
                results[rid] = replace(current, warnings=list(current.warnings) + [msg])
                continue

            try:
                self.graph.get(rid).refresh(self.node)
            except Exception as e:
                if isinstance(e, RefreshFailed):
                    extra = {"hint": e.hint} if e.hint else {}
                    error = refresh_failed(resource_id=sid, reason=e.message, sources=source_ids, **extra)
                else:
                    error = self._exception_to_error(rid, e, "refresh")
                payload = dict(current.payload)
                payload.update({"error": error.to_dict(), "refresh_sources": source_ids})
                results[rid] = replace(current, outcome=Outcome.FAILED, summary=error.message, payload=payload)
                self.ctx.log(resource_id=sid, level="ERROR", message=error.message, sources=source_ids)
                if self.ctx.manifest is not None:
                    trace.resource_failed(self.ctx.manifest, resource_id=sid, ts=_now(), error=error.to_dict())
                continue

            payload = dict(current.payload)
            payload["refresh_sources"] = source_ids
            results[rid] = replace(current, refreshed=True, payload=payload)
            refreshed.append(rid)
            self.ctx.log(resource_id=sid, level="INFO", message="refreshed", sources=source_ids)
            if self.ctx.manifest is not None:
                trace.resource_refreshed(self.ctx.manifest, resource_id=sid, ts=_now(), sources=source_ids)

        return refreshed

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------
    def converge(self) -> RunReport:
        """
        Executa uma run completa e retorna o RunReport.

        Raises:
            EngineConfigurationError: Se `engine.workers` ou
                `engine.timeout_s` forem inválidos (antes de qualquer probe).
        """
        workers = self._workers()
        timeout = self._timeout()
        noop = self._noop()

        state: Dict[str, Any] = {
            "results": {},
            "visited": [],
            "queue": RefreshQueue(),
            "deadline": None if timeout is None else time.monotonic() + timeout,
            "noop": noop,
        }

        self.ctx.log(
            resource_id=None,
            level="INFO",
            message="run started",
            resources=len(self.graph),
            workers=workers,
            noop=noop,
        )

        if workers == 1:
            self._pass_sequential(state)
        else:
            self._pass_concurrent(state, workers)

        refreshed = self._refresh_pass(state) if not noop else []

        results: Dict[ResourceId, ResourceResult] = state["results"]
        report = RunReport(
            run_id=self.ctx.run_id,
            results={str(rid): results[rid] for rid in self.graph.order},
            order=[str(rid) for rid in state["visited"]],
            refreshed=[str(rid) for rid in refreshed],
            noop=noop,
        )

        self.ctx.log(resource_id=None, level="INFO", message="run finished", **report.counts())
        if self.ctx.manifest is not None:
            trace.run_finished(self.ctx.manifest, ts=_now(), summary=report.counts())

        return report

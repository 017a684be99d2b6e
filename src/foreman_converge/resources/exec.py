# src/foreman_converge/resources/exec.py
"""
Tipo `exec`: comando executado para levar o nó a um estado.

Parâmetros:
    - command: linha de comando (padrão: o título)
    - creates: caminho cuja existência indica que o comando já rodou
    - refreshonly: executa apenas quando notificado (refresh)
    - cwd: diretório de trabalho
    - returns: códigos de saída aceitos (padrão [0])

Sem `creates` e sem `refreshonly`, o comando roda em toda run.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Tuple

from foreman_converge.backends.host import HostError
from foreman_converge.core.exceptions import ApplyFailed, RefreshFailed
from foreman_converge.core.resource.context import NodeContext
from foreman_converge.core.resource.resource import BaseResource, ensure_list
from foreman_converge.core.resource.types import ResourceId

from .service import to_bool


class ExecResource(BaseResource):
    kind = "exec"
    properties = ()
    parameters = ("command", "creates", "refreshonly", "cwd", "returns")
    defaults = {"refreshonly": False, "returns": [0]}

    def normalize(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        desired.setdefault("command", self.title)
        desired["command"] = str(desired["command"])
        desired["refreshonly"] = to_bool(desired["refreshonly"])
        desired["returns"] = [int(rc) for rc in ensure_list(desired["returns"])]
        return desired

    def autorequires(self) -> Iterable[ResourceId]:
        cwd = self.desired.get("cwd")
        return [ResourceId("directory", str(cwd))] if cwd else []

    def _satisfied(self, ctx: NodeContext) -> bool:
        creates = self.desired.get("creates")
        return bool(creates) and ctx.path(creates).exists()

    def _run(self, ctx: NodeContext) -> Tuple[int, str]:
        cwd = self.desired.get("cwd")
        return ctx.host.run_command(self.desired["command"], cwd=str(ctx.path(cwd)) if cwd else None)

    def probe(self, ctx: NodeContext) -> Dict[str, Any]:
        return {"creates_exists": self._satisfied(ctx)}

    def changes(self, current: Mapping[str, Any]) -> Dict[str, Tuple[Any, Any]]:
        if self.desired["refreshonly"] or current.get("creates_exists"):
            return {}
        return {"returns": ("notrun", self.desired["returns"])}

    def _details(self, rc: int, output: str) -> Dict[str, Any]:
        lines: List[str] = output.splitlines()[-20:]
        return {"command": self.desired["command"], "rc": rc, "output": lines}

    def apply(self, ctx: NodeContext, current: Mapping[str, Any], changes: Mapping[str, Tuple[Any, Any]]) -> None:
        try:
            rc, output = self._run(ctx)
        except HostError as e:
            raise ApplyFailed(message=str(e), details={"command": self.desired["command"]}) from e
        if rc not in self.desired["returns"]:
            raise ApplyFailed(message=f"command returned {rc}", details=self._details(rc, output))

    def refresh(self, ctx: NodeContext) -> None:
        if self._satisfied(ctx):
            return
        try:
            rc, output = self._run(ctx)
        except HostError as e:
            raise RefreshFailed(message=str(e), details={"command": self.desired["command"]}) from e
        if rc not in self.desired["returns"]:
            raise RefreshFailed(message=f"command returned {rc}", details=self._details(rc, output))

# src/foreman_converge/resources/service.py
"""
Tipo `service`.

Propriedades:
    - ensure: running | stopped (true/false aceitos)
    - enable: bool

Refresh reinicia o serviço, exceto quando o estado desejado é `stopped`.
Autorequire: o `package` de mesmo título, quando declarado.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Tuple

from foreman_converge.backends.host import HostError
from foreman_converge.core.exceptions import ApplyFailed, ProbeFailed, RefreshFailed
from foreman_converge.core.resource.context import NodeContext
from foreman_converge.core.resource.resource import BaseResource
from foreman_converge.core.resource.types import ResourceId


_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"invalid boolean: {value!r}")


class ServiceResource(BaseResource):
    kind = "service"
    properties = ("ensure", "enable")

    def normalize(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        ensure = desired.get("ensure")
        if ensure is not None:
            if ensure not in ("running", "stopped"):
                ensure = "running" if to_bool(ensure) else "stopped"
            desired["ensure"] = ensure
        if desired.get("enable") is not None:
            desired["enable"] = to_bool(desired["enable"])
        return desired

    def autorequires(self) -> Iterable[ResourceId]:
        return [ResourceId("package", self.title)]

    def probe(self, ctx: NodeContext) -> Dict[str, Any]:
        try:
            state = ctx.host.service_state(self.title)
        except HostError as e:
            raise ProbeFailed(message=str(e), details={"service": self.title}) from e
        return {
            "ensure": "running" if state.get("running") else "stopped",
            "enable": bool(state.get("enabled")),
        }

    def apply(self, ctx: NodeContext, current: Mapping[str, Any], changes: Mapping[str, Tuple[Any, Any]]) -> None:
        try:
            if "enable" in changes:
                ctx.host.set_service_enabled(self.title, self.desired["enable"])
            if "ensure" in changes:
                ctx.host.set_service_running(self.title, self.desired["ensure"] == "running")
        except HostError as e:
            raise ApplyFailed(message=str(e), details={"service": self.title}) from e

    def refresh(self, ctx: NodeContext) -> None:
        if self.desired.get("ensure") == "stopped":
            return
        try:
            ctx.host.restart_service(self.title)
        except HostError as e:
            raise RefreshFailed(message=str(e), details={"service": self.title}) from e

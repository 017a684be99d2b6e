# src/foreman_converge/resources/selinux.py
"""
Tipo `selboolean`: boolean SELinux (ex.: `httpd_can_network_connect`).

`value` é normalizado para "on"/"off". `persistent` (padrão true) grava o
valor na política, sobrevivendo a reboot. Um boolean não definido na
política é falha de probe.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from foreman_converge.backends.host import HostError
from foreman_converge.core.exceptions import ApplyFailed, ProbeFailed
from foreman_converge.core.resource.context import NodeContext
from foreman_converge.core.resource.resource import BaseResource

from .service import to_bool


class SelbooleanResource(BaseResource):
    kind = "selboolean"
    properties = ("value",)
    parameters = ("persistent",)
    defaults = {"persistent": True}

    def normalize(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        if desired.get("value") is None:
            raise ValueError("selboolean requires `value`")
        desired["value"] = "on" if to_bool(desired["value"]) else "off"
        desired["persistent"] = to_bool(desired["persistent"])
        return desired

    def probe(self, ctx: NodeContext) -> Dict[str, Any]:
        try:
            value = ctx.host.get_boolean(self.title)
        except HostError as e:
            raise ProbeFailed(message=str(e), details={"boolean": self.title}) from e
        if value is None:
            raise ProbeFailed(
                message=f"SELinux boolean not defined: {self.title}",
                details={"boolean": self.title},
                hint="Verifique se o SELinux está habilitado e se a política define o boolean.",
            )
        return {"value": "on" if value else "off"}

    def apply(self, ctx: NodeContext, current: Mapping[str, Any], changes: Mapping[str, Tuple[Any, Any]]) -> None:
        try:
            ctx.host.set_boolean(self.title, self.desired["value"] == "on", persistent=self.desired["persistent"])
        except HostError as e:
            raise ApplyFailed(message=str(e), details={"boolean": self.title}) from e

# src/foreman_converge/resources/package.py
"""
Tipo `package`.

`ensure` aceita:
    - installed / present → qualquer versão instalada satisfaz
    - latest              → a versão instalada deve ser a mais recente disponível
    - absent / purged     → pacote não instalado
    - uma versão explícita (ex.: "3.9.1-1.el9")
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from foreman_converge.backends.host import HostError
from foreman_converge.core.exceptions import ApplyFailed, ProbeFailed
from foreman_converge.core.resource.context import NodeContext
from foreman_converge.core.resource.resource import ABSENT, BaseResource


class PackageResource(BaseResource):
    kind = "package"
    properties = ("ensure",)
    defaults = {"ensure": "installed"}

    def normalize(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        ensure = str(desired.get("ensure") or "installed").strip()
        desired["ensure"] = "installed" if ensure == "present" else ensure
        return desired

    def probe(self, ctx: NodeContext) -> Dict[str, Any]:
        try:
            version = ctx.host.package_version(self.title)
            latest = ctx.host.latest_version(self.title) if self.desired["ensure"] == "latest" else None
        except HostError as e:
            raise ProbeFailed(message=str(e), details={"package": self.title}) from e
        return {"ensure": version or "absent", "latest": latest}

    def changes(self, current: Mapping[str, Any]) -> Dict[str, Tuple[Any, Any]]:
        have = current.get("ensure", "absent")
        want = self.desired["ensure"]

        if want in ABSENT:
            insync = have == "absent"
        elif want == "installed":
            insync = have != "absent"
        elif want == "latest":
            insync = have != "absent" and have == (current.get("latest") or have)
        else:
            insync = have == want
        return {} if insync else {"ensure": (have, want)}

    def apply(self, ctx: NodeContext, current: Mapping[str, Any], changes: Mapping[str, Tuple[Any, Any]]) -> None:
        want = self.desired["ensure"]
        try:
            if want in ABSENT:
                ctx.host.remove_package(self.title)
            elif want == "installed":
                ctx.host.install_package(self.title)
            elif want == "latest":
                ctx.host.install_package(self.title, current.get("latest"))
            else:
                ctx.host.install_package(self.title, want)
        except HostError as e:
            raise ApplyFailed(message=str(e), details={"package": self.title, "ensure": want}) from e

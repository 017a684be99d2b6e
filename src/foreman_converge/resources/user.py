# src/foreman_converge/resources/user.py
"""Tipo `user`: conta local (uid, gid, home, shell, grupos suplementares)."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from foreman_converge.backends.host import HostError
from foreman_converge.core.exceptions import ApplyFailed, ProbeFailed
from foreman_converge.core.resource.context import NodeContext
from foreman_converge.core.resource.resource import ABSENT, BaseResource, ensure_list


class UserResource(BaseResource):
    kind = "user"
    properties = ("ensure", "uid", "gid", "home", "shell", "groups")
    parameters = ("system",)
    defaults = {"ensure": "present", "system": False}

    def normalize(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        if desired["ensure"] not in ("present",) + ABSENT:
            raise ValueError(f"invalid ensure for user: {desired['ensure']!r}")
        for key in ("uid", "gid"):
            if desired.get(key) is not None:
                desired[key] = int(desired[key])
        if "groups" in desired:
            desired["groups"] = sorted(str(g) for g in ensure_list(desired["groups"]))
        return desired

    def insync(self, name: str, current: Any, desired: Any) -> bool:
        if name == "groups":
            return sorted(current or []) == desired
        return current == desired

    def probe(self, ctx: NodeContext) -> Dict[str, Any]:
        try:
            user = ctx.host.get_user(self.title)
        except HostError as e:
            raise ProbeFailed(message=str(e), details={"user": self.title}) from e
        if user is None:
            return {"ensure": "absent"}
        return {"ensure": "present", **user}

    def apply(self, ctx: NodeContext, current: Mapping[str, Any], changes: Mapping[str, Tuple[Any, Any]]) -> None:
        try:
            if self.desired["ensure"] in ABSENT:
                ctx.host.remove_user(self.title)
                return
            attrs = {k: v for k, v in self.desired.items() if k not in ("ensure",)}
            ctx.host.ensure_user(self.title, attrs)
        except HostError as e:
            raise ApplyFailed(message=str(e), details={"user": self.title}) from e

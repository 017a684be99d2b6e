# src/foreman_converge/backends/system.py
"""
SystemHost — colaborador de host real, via `subprocess`.

Ferramentas utilizadas (EL/Fedora):
    - pacotes:  rpm -q / yum
    - serviços: systemctl
    - usuários: getent / useradd / usermod / userdel
    - SELinux:  getsebool / setsebool

Comandos de escrita com código de saída não zero levantam `HostError`
com o stderr do processo; consultas de alvo inexistente retornam `None`.
"""

from __future__ import annotations

import shlex
import subprocess
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .host import HostError


def run(cmd: List[str], *, timeout: int = 300, cwd: Optional[str] = None) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, cwd=cwd, check=False)
    except subprocess.TimeoutExpired as e:
        raise HostError(f"timeout after {timeout}s: {shlex.join(cmd)}") from e
    except OSError as e:
        raise HostError(f"cannot execute {cmd[0]}: {e}") from e


class SystemHost:
    """Implementação de `HostBackend` para o sistema local."""

    def __init__(self, *, timeout: int = 300):
        self.timeout = timeout

    def _run(self, cmd: List[str], *, cwd: Optional[str] = None) -> subprocess.CompletedProcess:
        return run(cmd, timeout=self.timeout, cwd=cwd)

    def _check(self, cmd: List[str]) -> str:
        cp = self._run(cmd)
        if cp.returncode != 0:
            err = (cp.stderr or cp.stdout).strip()
            raise HostError(f"{shlex.join(cmd)} failed (rc={cp.returncode}): {err}")
        return cp.stdout

    # -----------------------------
    # Pacotes
    # -----------------------------
    def package_version(self, name: str) -> Optional[str]:
        cp = self._run(["rpm", "-q", "--qf", "%{VERSION}-%{RELEASE}", name])
        if cp.returncode != 0:
            return None
        return cp.stdout.strip() or None

    def latest_version(self, name: str) -> Optional[str]:
        cp = self._run(["yum", "-q", "list", "available", name])
        if cp.returncode != 0:
            return self.package_version(name)
        for line in cp.stdout.splitlines():
            cols = line.split()
            if len(cols) >= 2 and cols[0].rsplit(".", 1)[0] == name:
                # epoch é ignorado na comparação com rpm -q
                return cols[1].split(":")[-1]
        return self.package_version(name)

    def install_package(self, name: str, version: Optional[str] = None) -> None:
        target = f"{name}-{version}" if version else name
        self._check(["yum", "-y", "install", target])

    def remove_package(self, name: str) -> None:
        self._check(["yum", "-y", "remove", name])

    # -----------------------------
    # Serviços
    # -----------------------------
    def service_state(self, name: str) -> Dict[str, bool]:
        active = self._run(["systemctl", "is-active", name]).stdout.strip()
        enabled = self._run(["systemctl", "is-enabled", name]).stdout.strip()
        return {"running": active == "active", "enabled": enabled == "enabled"}

    def set_service_running(self, name: str, running: bool) -> None:
        self._check(["systemctl", "start" if running else "stop", name])

    def set_service_enabled(self, name: str, enabled: bool) -> None:
        self._check(["systemctl", "enable" if enabled else "disable", name])

    def restart_service(self, name: str) -> None:
        self._check(["systemctl", "restart", name])

    # -----------------------------
    # Usuários
    # -----------------------------
    def get_user(self, name: str) -> Optional[Dict[str, Any]]:
        cp = self._run(["getent", "passwd", name])
        if cp.returncode != 0 or not cp.stdout.strip():
            return None
        fields = cp.stdout.strip().split(":")
        groups: List[str] = []
        for line in self._run(["getent", "group"]).stdout.splitlines():
            parts = line.split(":")
            if len(parts) == 4 and name in parts[3].split(","):
                groups.append(parts[0])
        return {
            "uid": int(fields[2]),
            "gid": int(fields[3]),
            "home": fields[5],
            "shell": fields[6],
            "groups": sorted(groups),
        }

    def ensure_user(self, name: str, attrs: Mapping[str, Any]) -> None:
        exists = self.get_user(name) is not None
        cmd = ["usermod"] if exists else ["useradd"]
        flags = (("uid", "-u"), ("gid", "-g"), ("home", "-d"), ("shell", "-s"))
        for key, flag in flags:
            if attrs.get(key) is not None:
                cmd += [flag, str(attrs[key])]
        if attrs.get("groups") is not None:
            cmd += ["-G", ",".join(attrs["groups"])]
        if not exists and attrs.get("system"):
            cmd.append("-r")
        self._check(cmd + [name])

    def remove_user(self, name: str) -> None:
        self._check(["userdel", name])

    # -----------------------------
    # SELinux
    # -----------------------------
    def get_boolean(self, name: str) -> Optional[bool]:
        cp = self._run(["getsebool", name])
        if cp.returncode != 0:
            return None
        # "httpd_can_network_connect --> on"
        return cp.stdout.strip().endswith("on")

    def set_boolean(self, name: str, value: bool, persistent: bool = True) -> None:
        cmd = ["setsebool"]
        if persistent:
            cmd.append("-P")
        self._check(cmd + [name, "on" if value else "off"])

    # -----------------------------
    # Comandos
    # -----------------------------
    def run_command(self, command: str, cwd: Optional[str] = None) -> Tuple[int, str]:
        cp = self._run(["/bin/sh", "-c", command], cwd=cwd)
        return cp.returncode, (cp.stdout + cp.stderr).strip()

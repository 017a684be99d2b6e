# src/foreman_converge/backends/host.py
"""
Colaboradores do host — contrato e implementação em memória.

Resources de pacote, serviço, usuário, boolean SELinux e comando não falam
diretamente com o sistema operacional: toda leitura/escrita passa por um
`HostBackend`, recebido via `NodeContext.host`.

Implementações:
    - InMemoryHost → estado simulado (testes, execuções de ensaio)
    - SystemHost   → `subprocess` (ver `backends.system`)

Regras:
    - Falhas do host são sinalizadas por `HostError` (nunca silenciadas)
    - Leituras de alvo inexistente retornam `None`, não levantam erro
"""

from __future__ import annotations

import copy
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable


class HostError(RuntimeError):
    """Falha ao consultar ou alterar o host."""


@runtime_checkable
class HostBackend(Protocol):
    """Operações de host usadas pelos tipos de Resource."""

    # pacotes
    def package_version(self, name: str) -> Optional[str]: ...
    def latest_version(self, name: str) -> Optional[str]: ...
    def install_package(self, name: str, version: Optional[str] = None) -> None: ...
    def remove_package(self, name: str) -> None: ...

    # serviços
    def service_state(self, name: str) -> Dict[str, bool]: ...
    def set_service_running(self, name: str, running: bool) -> None: ...
    def set_service_enabled(self, name: str, enabled: bool) -> None: ...
    def restart_service(self, name: str) -> None: ...

    # usuários
    def get_user(self, name: str) -> Optional[Dict[str, Any]]: ...
    def ensure_user(self, name: str, attrs: Mapping[str, Any]) -> None: ...
    def remove_user(self, name: str) -> None: ...

    # SELinux
    def get_boolean(self, name: str) -> Optional[bool]: ...
    def set_boolean(self, name: str, value: bool, persistent: bool = True) -> None: ...

    # comandos
    def run_command(self, command: str, cwd: Optional[str] = None) -> Tuple[int, str]: ...


class InMemoryHost:
    """
    Host simulado, seguro para uso concorrente.

    O estado inicial pode ser semeado (`packages`, `services`, `users`,
    `booleans`), falhas podem ser injetadas por operação/alvo e cada
    chamada de escrita é registrada em `calls`, na ordem em que ocorreu.

    Exemplo:
        host = InMemoryHost(packages={"httpd": "2.4.57"})
        host.fail_on("restart_service", "httpd", "unit failed")
    """

    def __init__(
        self,
        *,
        packages: Optional[Mapping[str, str]] = None,
        available: Optional[Mapping[str, str]] = None,
        services: Optional[Mapping[str, Mapping[str, bool]]] = None,
        users: Optional[Mapping[str, Mapping[str, Any]]] = None,
        booleans: Optional[Mapping[str, bool]] = None,
    ):
        self._lock = threading.Lock()
        self.packages: Dict[str, str] = dict(packages or {})
        self.available: Dict[str, str] = dict(available or {})
        self.services: Dict[str, Dict[str, bool]] = {
            k: {"running": bool(v.get("running")), "enabled": bool(v.get("enabled"))}
            for k, v in (services or {}).items()
        }
        self.users: Dict[str, Dict[str, Any]] = {k: dict(v) for k, v in (users or {}).items()}
        self.booleans: Dict[str, bool] = dict(booleans or {})
        self.commands: Dict[str, Tuple[int, str, Optional[Path]]] = {}
        self.calls: List[Tuple[str, ...]] = []
        self._failures: Dict[Tuple[str, str], str] = {}
        self._next_uid = 1000

    # -----------------------------
    # Configuração do simulador
    # -----------------------------
    def fail_on(self, operation: str, target: str, message: str = "simulated failure") -> None:
        """Faz `operation` levantar `HostError` para `target`."""
        self._failures[(operation, target)] = message

    def register_command(self, command: str, *, rc: int = 0, output: str = "", creates: Optional[Path] = None) -> None:
        """Define o resultado de um comando; `creates` é tocado quando rc == 0."""
        self.commands[command] = (rc, output, Path(creates) if creates is not None else None)

    def calls_for(self, operation: str) -> List[Tuple[str, ...]]:
        return [c for c in self.calls if c[0] == operation]

    def _check(self, operation: str, target: str) -> None:
        message = self._failures.get((operation, target))
        if message is not None:
            raise HostError(f"{operation}({target}): {message}")

    def _record(self, *call: str) -> None:
        self.calls.append(tuple(call))

    # -----------------------------
    # Pacotes
    # -----------------------------
    def package_version(self, name: str) -> Optional[str]:
        self._check("package_version", name)
        with self._lock:
            return self.packages.get(name)

    def latest_version(self, name: str) -> Optional[str]:
        with self._lock:
            return self.available.get(name) or self.packages.get(name)

    def install_package(self, name: str, version: Optional[str] = None) -> None:
        self._check("install_package", name)
        with self._lock:
            resolved = version or self.available.get(name) or "1.0"
            self.packages[name] = resolved
            self._record("install_package", name, resolved)

    def remove_package(self, name: str) -> None:
        self._check("remove_package", name)
        with self._lock:
            self.packages.pop(name, None)
            self._record("remove_package", name)

    # -----------------------------
    # Serviços
    # -----------------------------
    def service_state(self, name: str) -> Dict[str, bool]:
        self._check("service_state", name)
        with self._lock:
            return dict(self.services.get(name, {"running": False, "enabled": False}))

    def set_service_running(self, name: str, running: bool) -> None:
        self._check("set_service_running", name)
        with self._lock:
            self.services.setdefault(name, {"running": False, "enabled": False})["running"] = bool(running)
            self._record("set_service_running", name, "start" if running else "stop")

    def set_service_enabled(self, name: str, enabled: bool) -> None:
        self._check("set_service_enabled", name)
        with self._lock:
            self.services.setdefault(name, {"running": False, "enabled": False})["enabled"] = bool(enabled)
            self._record("set_service_enabled", name, "enable" if enabled else "disable")

    def restart_service(self, name: str) -> None:
        self._check("restart_service", name)
        with self._lock:
            self.services.setdefault(name, {"running": False, "enabled": False})["running"] = True
            self._record("restart_service", name)

    # -----------------------------
    # Usuários
    # -----------------------------
    def get_user(self, name: str) -> Optional[Dict[str, Any]]:
        self._check("get_user", name)
        with self._lock:
            user = self.users.get(name)
            return copy.deepcopy(user) if user is not None else None

    def ensure_user(self, name: str, attrs: Mapping[str, Any]) -> None:
        self._check("ensure_user", name)
        with self._lock:
            user = self.users.get(name)
            if user is None:
                uid = attrs.get("uid")
                if uid is None:
                    uid = self._next_uid
                    self._next_uid += 1
                user = {
                    "uid": uid,
                    "gid": attrs.get("gid", uid),
                    "home": f"/home/{name}",
                    "shell": "/bin/bash",
                    "groups": [],
                }
                self.users[name] = user
            for key, value in attrs.items():
                if value is not None and key != "system":
                    user[key] = copy.deepcopy(value)
            self._record("ensure_user", name)

    def remove_user(self, name: str) -> None:
        self._check("remove_user", name)
        with self._lock:
            self.users.pop(name, None)
            self._record("remove_user", name)

    # -----------------------------
    # SELinux
    # -----------------------------
    def get_boolean(self, name: str) -> Optional[bool]:
        self._check("get_boolean", name)
        with self._lock:
            return self.booleans.get(name)

    def set_boolean(self, name: str, value: bool, persistent: bool = True) -> None:
        self._check("set_boolean", name)
        with self._lock:
            if name not in self.booleans:
                raise HostError(f"set_boolean({name}): boolean not defined")
            self.booleans[name] = bool(value)
            self._record("set_boolean", name, "on" if value else "off", "persistent" if persistent else "runtime")

    # -----------------------------
    # Comandos
    # -----------------------------
    def run_command(self, command: str, cwd: Optional[str] = None) -> Tuple[int, str]:
        self._check("run_command", command)
        with self._lock:
            rc, output, creates = self.commands.get(command, (0, "", None))
            self._record("run_command", command)
        if rc == 0 and creates is not None:
            creates.parent.mkdir(parents=True, exist_ok=True)
            creates.touch()
        return rc, output

# src/foreman_converge/resources/file.py
"""
Tipos `file` e `directory`.

O título é o caminho absoluto do alvo, resolvido sob `NodeContext.root`.

Propriedades gerenciadas:
    - ensure: file|directory (ou present) | absent
    - content (apenas `file`): conteúdo textual completo
    - mode: permissões octais, normalizadas para 4 dígitos ("0644")
    - owner / group: nomes de usuário e grupo

Autorequire:
    - diretório pai declarado como `directory`
    - usuário declarado com o nome de `owner` ou `group`

Regras:
    - Escrita de conteúdo é atômica (arquivo temporário + rename)
    - `file` exige que o diretório pai exista; `directory` cria os pais
    - Um caminho existente com tipo diferente do desejado é falha de apply
"""

from __future__ import annotations

import grp
import os
import pwd
import shutil
import stat
import tempfile
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from foreman_converge.core.exceptions import ApplyFailed, ProbeFailed
from foreman_converge.core.resource.context import NodeContext
from foreman_converge.core.resource.resource import ABSENT, BaseResource
from foreman_converge.core.resource.types import ResourceId


def normalize_mode(value: Any) -> str:
    """
    Normaliza permissões para string octal de 4 dígitos.

    Inteiros são tratados como o valor numérico já convertido (o YAML lê
    `0644` como 420); strings devem conter apenas dígitos octais.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid mode: {value!r}")
    if isinstance(value, int):
        if not 0 <= value <= 0o7777:
            raise ValueError(f"invalid mode: {value!r}")
        return format(value, "04o")
    text = str(value).strip()
    if text.startswith("0o"):
        text = text[2:]
    if not text or len(text) > 4 or any(c not in "01234567" for c in text):
        raise ValueError(f"invalid mode: {value!r}")
    return text.zfill(4)


def _owner_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def _lookup_uid(name: str) -> int:
    if name.isdigit():
        return int(name)
    return pwd.getpwnam(name).pw_uid


def _lookup_gid(name: str) -> int:
    if name.isdigit():
        return int(name)
    return grp.getgrnam(name).gr_gid


class _PathResource(BaseResource):
    """Base comum de `file` e `directory`."""

    file_type = ""
    properties: Tuple[str, ...] = ("ensure", "mode", "owner", "group")
    parameters: Tuple[str, ...] = ()

    def normalize(self, desired: Dict[str, Any]) -> Dict[str, Any]:
        ensure = desired.get("ensure", "present")
        if ensure in ("present", self.file_type):
            desired["ensure"] = self.file_type
        elif ensure not in ABSENT:
            raise ValueError(f"invalid ensure for {self.kind}: {ensure!r}")
        if desired.get("mode") is not None:
            desired["mode"] = normalize_mode(desired["mode"])
        for key in ("owner", "group"):
            if desired.get(key) is not None:
                desired[key] = str(desired[key])
        return desired

    def autorequires(self) -> Iterable[ResourceId]:
        out: List[ResourceId] = []
        path = PurePosixPath(self.title)
        if path.parent != path:
            out.append(ResourceId("directory", str(path.parent)))
        for key in ("owner", "group"):
            if self.desired.get(key):
                out.append(ResourceId("user", self.desired[key]))
        return out

    # -----------------------------
    # Probe
    # -----------------------------
    def _probe_extra(self, path: Path, st: os.stat_result) -> Dict[str, Any]:
        return {}

    def probe(self, ctx: NodeContext) -> Dict[str, Any]:
        path = ctx.path(self.title)
        try:
            st = path.lstat()
        except FileNotFoundError:
            return {"ensure": "absent"}
        except OSError as e:
            raise ProbeFailed(message=str(e), details={"path": str(path)}) from e

        if stat.S_ISDIR(st.st_mode):
            kind = "directory"
        elif stat.S_ISREG(st.st_mode):
            kind = "file"
        else:
            kind = "other"

        current: Dict[str, Any] = {
            "ensure": kind,
            "mode": format(stat.S_IMODE(st.st_mode), "04o"),
            "owner": _owner_name(st.st_uid),
            "group": _group_name(st.st_gid),
        }
        if kind == self.file_type:
            try:
                current.update(self._probe_extra(path, st))
            except (OSError, UnicodeDecodeError) as e:
                raise ProbeFailed(
                    message=str(e),
                    details={"path": str(path)},
                    hint="O conteúdo gerenciado deve ser texto UTF-8.",
                ) from e
        return current

    # -----------------------------
    # Apply
    # -----------------------------
    def _create(self, path: Path) -> None:
        raise NotImplementedError

    def _remove(self, path: Path) -> None:
        raise NotImplementedError

    def _write_extra(self, path: Path, changes: Mapping[str, Tuple[Any, Any]]) -> None:
        return None

    def apply(self, ctx: NodeContext, current: Mapping[str, Any], changes: Mapping[str, Tuple[Any, Any]]) -> None:
        path = ctx.path(self.title)
        have = current.get("ensure", "absent")
        try:
            if self.desired["ensure"] in ABSENT:
                self._remove(path)
                return

            if have == "absent":
                self._create(path)
            elif have != self.file_type:
                raise ApplyFailed(
                    message=f"{path} exists as {have}, expected {self.file_type}",
                    details={"path": str(path), "current": have},
                )

            self._write_extra(path, changes)

            if "mode" in changes:
                os.chmod(path, int(self.desired["mode"], 8))
            if "owner" in changes or "group" in changes:
                uid = _lookup_uid(self.desired["owner"]) if "owner" in changes else -1
                gid = _lookup_gid(self.desired["group"]) if "group" in changes else -1
                os.chown(path, uid, gid)
        except KeyError as e:
            raise ApplyFailed(message=f"unknown user or group: {e}", details={"path": str(path)}) from e
        except OSError as e:
            raise ApplyFailed(message=str(e), details={"path": str(path)}) from e


class FileResource(_PathResource):
    """Arquivo regular com conteúdo, permissões e dono opcionais."""

    kind = "file"
    file_type = "file"
    properties = ("ensure", "content", "mode", "owner", "group")

    def _probe_extra(self, path: Path, st: os.stat_result) -> Dict[str, Any]:
        if "content" not in self.desired:
            return {}
        return {"content": path.read_bytes().decode("utf-8")}

    def _create(self, path: Path) -> None:
        if not path.parent.is_dir():
            raise ApplyFailed(
                message=f"parent directory does not exist: {path.parent}",
                details={"path": str(path)},
                hint="Declare o diretório pai como `directory` (autorequire).",
            )
        if "content" not in self.desired:
            path.touch()

    def _write_extra(self, path: Path, changes: Mapping[str, Tuple[Any, Any]]) -> None:
        if "content" in changes:
            _atomic_write(path, str(self.desired["content"]))

    def _remove(self, path: Path) -> None:
        if path.is_dir() and not path.is_symlink():
            raise ApplyFailed(message=f"{path} is a directory", details={"path": str(path)})
        path.unlink(missing_ok=True)


class DirectoryResource(_PathResource):
    """Diretório; `force: true` permite remover diretórios não vazios."""

    kind = "directory"
    file_type = "directory"
    parameters = ("force",)
    defaults = {"force": False}

    def _create(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def _remove(self, path: Path) -> None:
        if not path.exists():
            return
        if self.desired.get("force"):
            shutil.rmtree(path)
        else:
            path.rmdir()


def _atomic_write(path: Path, content: str) -> None:
    mode = 0o644
    if path.exists():
        mode = stat.S_IMODE(path.stat().st_mode)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise

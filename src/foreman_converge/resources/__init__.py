# src/foreman_converge/resources/__init__.py
"""
Tipos concretos de Resource do Foreman Converge.

Tipos padrão:
    - file / directory → filesystem sob `NodeContext.root`
    - package          → pacotes do host
    - service          → serviços (start/stop/enable, restart no refresh)
    - user             → contas locais
    - selboolean       → booleans SELinux
    - exec             → comandos (ex.: migração de banco)
"""

from foreman_converge.core.resource.registry import KindRegistry

from .exec import ExecResource
from .file import DirectoryResource, FileResource
from .package import PackageResource
from .selinux import SelbooleanResource
from .service import ServiceResource
from .user import UserResource

DEFAULT_KINDS = (
    FileResource,
    DirectoryResource,
    PackageResource,
    ServiceResource,
    UserResource,
    SelbooleanResource,
    ExecResource,
)


def default_kinds() -> KindRegistry:
    """Retorna um novo `KindRegistry` com todos os tipos padrão."""
    return KindRegistry({cls.kind: cls for cls in DEFAULT_KINDS})


__all__ = [
    "DEFAULT_KINDS",
    "DirectoryResource",
    "ExecResource",
    "FileResource",
    "PackageResource",
    "SelbooleanResource",
    "ServiceResource",
    "UserResource",
    "default_kinds",
]

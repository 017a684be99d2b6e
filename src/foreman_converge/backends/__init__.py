# src/foreman_converge/backends/__init__.py
"""
Colaboradores de host do Foreman Converge.

API pública:
    - HostBackend  → contrato (Protocol) usado pelos Resources
    - HostError    → falha do host
    - InMemoryHost → host simulado (testes, ensaios)
    - SystemHost   → host real via subprocess
"""

from .host import HostBackend, HostError, InMemoryHost
from .system import SystemHost

__all__ = ["HostBackend", "HostError", "InMemoryHost", "SystemHost"]

# src/foreman_converge/core/config/__init__.py

"""
Camada de configuração do Foreman Converge.

Este pacote contém as estruturas e utilitários responsáveis por carregar,
mesclar, validar estruturalmente e identificar a configuração de uma run
de convergência.

A configuração é:
    - declarativa
    - determinística
    - separada do catálogo de Resources

Chaves reconhecidas pelo Engine:
    - engine.workers    → tamanho do pool de workers (1 = sequencial)
    - engine.timeout_s  → timeout da run inteira (null = sem limite)
    - engine.noop       → apenas reporta o que mudaria
    - engine.refresh    → habilita a propagação de refresh
    - resources.<id>.enabled → desabilita Resources específicos
    - params / facts    → parâmetros da run e fatos do nó

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - A mesma entrada sempre produz a mesma configuração final
    - Conflitos estruturais são tratados como erro
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash, compute_hash
from .loader import load_config, load_document
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "compute_hash",
    "load_config",
    "load_document",
    "deep_merge",
]

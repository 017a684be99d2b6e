# src/foreman_converge/core/config/merge.py
"""
Deep-merge de configuração (defaults + overrides locais).

Política de merge (v1):
    - dict + dict        → merge recursivo por chave
    - list               → sobrescrita total
    - escalar            → sobrescrita direta
    - override `null`    → remove a chave da base
    - conflito de tipos  → ConfigTypeConflictError

Os inputs nunca são mutados; a mesma entrada sempre produz a mesma saída.
A remoção via `null` permite que um arquivo local desfaça, por exemplo,
um `engine.timeout_s` definido nos defaults.
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _merge_value(key: str, base_value: Any, override_value: Any) -> Any:
    if isinstance(base_value, dict) and isinstance(override_value, dict):
        return deep_merge(base_value, override_value)

    if isinstance(override_value, list):
        return deepcopy(override_value)

    # bool é subclasse de int; int -> float é aceito (ex.: timeout 30 -> 12.5)
    numeric = (int, float)
    if (
        isinstance(base_value, numeric)
        and isinstance(override_value, numeric)
        and not isinstance(base_value, bool)
        and not isinstance(override_value, bool)
    ):
        return override_value

    if type(base_value) is not type(override_value):
        raise ConfigTypeConflictError(
            f"Conflito de tipo na chave '{key}': "
            f"{type(base_value).__name__} vs {type(override_value).__name__}"
        )

    return deepcopy(override_value)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Combina `base` com `override` e retorna um novo dicionário.

    Chaves presentes apenas na base são preservadas; chaves cujo valor no
    override é `None` são removidas. Valores `None` na base aceitam qualquer
    tipo no override.

    Raises:
        ConfigTypeConflictError: Se algum dos lados não for dict, ou se uma
            chave tiver tipos incompatíveis.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, override_value in override.items():
        if override_value is None:
            result.pop(key, None)
            continue

        if key not in result or result[key] is None:
            result[key] = deepcopy(override_value)
            continue

        result[key] = _merge_value(key, result[key], override_value)

    return result

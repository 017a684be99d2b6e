# src/foreman_converge/core/config/hashing.py
"""
Hashing canônico de entradas da run.

Este módulo gera a identidade estrutural (SHA-256) das entradas de uma
convergência, usada no Manifest para associar uma run à configuração e ao
catálogo que a produziram.

Política de hashing (v1):
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - Codificação UTF-8
    - Valores não serializáveis em JSON são convertidos via `str`

Invariantes:
    - Entradas estruturalmente equivalentes produzem o mesmo hash
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres
"""

import hashlib
import json
from typing import Any, Dict


def compute_hash(value: Any) -> str:
    """
    Gera um hash determinístico de qualquer estrutura serializável.

    Usado tanto para a configuração efetiva quanto para o catálogo de
    declarações. A ordem original das chaves não influencia o resultado.

    Args:
        value (Any): Estrutura a ser identificada (dict, list, escalares).

    Returns:
        str: Hash SHA-256 hexadecimal.
    """
    canonical_json = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera o hash da configuração efetiva da run.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )
    return compute_hash(config)

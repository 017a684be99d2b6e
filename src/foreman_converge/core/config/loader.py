# src/foreman_converge/core/config/loader.py
"""
Loader canônico de configuração do Foreman Converge.

Este módulo é responsável por carregar, validar estruturalmente e resolver
a configuração efetiva de uma run de convergência.

A configuração é resolvida a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional)

O mesmo leitor de documentos (`load_document`) é reutilizado pelo
carregador de catálogos, garantindo um único formato aceito (YAML/JSON)
e uma única política de validação do tipo raiz.

Invariantes:
    - O arquivo de defaults é obrigatório
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults

Limites explícitos:
    - Não valida semântica das chaves (responsabilidade do Engine)
    - Não persiste configuração ou hash
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


def load_document(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Carrega um documento YAML/JSON e valida que o conteúdo raiz é um dict.

    Arquivos vazios são interpretados como dicionários vazios.

    Args:
        path (Union[str, Path]): Caminho para o documento.

    Returns:
        Dict[str, Any]: Conteúdo do documento.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    path = Path(path)
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Documento deve ter raiz dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: Union[str, Path],
    local_path: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva da run.

    Política de resolução:
        - O arquivo de defaults é obrigatório
        - O arquivo local é opcional e ignorado quando não existe
        - Quando presente, o local tem prioridade (via `deep_merge`)

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults não existir.
        UnsupportedConfigFormatError: Se o formato não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """
    effective = load_document(defaults_path)

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, load_document(local_file))

    return effective

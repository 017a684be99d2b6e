# src/foreman_converge/core/graph/references.py
"""
Referências implícitas embutidas em atributos.

Um atributo pode embutir a saída de outro Resource com a sintaxe
`${kind[title]}`; por exemplo, o conteúdo de um vhost apontando para o
diretório gerenciado da aplicação:

    DocumentRoot ${directory[/usr/share/foreman]}/public

No build, cada referência:
    1. vira uma aresta de ordenação (referenciado -> referenciador)
    2. é substituída pelo título do Resource referenciado (para
       `file`/`directory`, o caminho gerenciado)

Depois disso, parâmetros da run são interpolados com `${nome}`
(`string.Template.safe_substitute`): nomes desconhecidos permanecem
literais e `$$` produz um `$`.

Nada aqui é reavaliado no apply.
"""

from __future__ import annotations

import re
from string import Template
from typing import Any, Callable, List, Mapping

from foreman_converge.core.resource.types import ResourceId


REFERENCE_RE = re.compile(r"\$\{([A-Za-z][A-Za-z0-9_]*)\[([^\]]+)\]\}")


def find_references(value: Any) -> List[ResourceId]:
    """Lista as referências `${kind[title]}` em `value` (recursivo), sem repetição."""
    found: List[ResourceId] = []

    def _walk(v: Any) -> None:
        if isinstance(v, str):
            for kind, title in REFERENCE_RE.findall(v):
                rid = ResourceId(kind=kind, title=title)
                if rid not in found:
                    found.append(rid)
        elif isinstance(v, Mapping):
            for item in v.values():
                _walk(item)
        elif isinstance(v, (list, tuple)):
            for item in v:
                _walk(item)

    _walk(value)
    return found


def substitute_references(value: Any, resolve: Callable[[ResourceId], str]) -> Any:
    """Substitui cada `${kind[title]}` pelo valor retornado por `resolve`."""
    if isinstance(value, str):
        return REFERENCE_RE.sub(lambda m: resolve(ResourceId(kind=m.group(1), title=m.group(2))), value)
    if isinstance(value, Mapping):
        return {k: substitute_references(v, resolve) for k, v in value.items()}
    if isinstance(value, list):
        return [substitute_references(v, resolve) for v in value]
    if isinstance(value, tuple):
        return tuple(substitute_references(v, resolve) for v in value)
    return value


def render_params(value: Any, params: Mapping[str, Any]) -> Any:
    """Interpola `${nome}` com parâmetros da run em strings (recursivo)."""
    if isinstance(value, str):
        if "$" not in value:
            return value
        return Template(value).safe_substitute({k: _as_text(v) for k, v in params.items()})
    if isinstance(value, Mapping):
        return {k: render_params(v, params) for k, v in value.items()}
    if isinstance(value, list):
        return [render_params(v, params) for v in value]
    if isinstance(value, tuple):
        return tuple(render_params(v, params) for v in value)
    return value


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)

# src/foreman_converge/core/graph/declarations.py
"""
Declarações de Resources e carregamento de catálogos.

Uma `Declaration` é a forma de intake de um Resource: tipo, título,
atributos desejados e metaparâmetros de relacionamento. Ela ainda não é
um Resource; o builder valida identidades, resolve referências e
instancia o tipo correspondente.

Metaparâmetros reconhecidos:
    - require:   este Resource é aplicado depois dos referenciados
    - before:    este Resource é aplicado antes dos referenciados
    - notify:    como `before`, e os referenciados recebem refresh quando
                 este Resource muda
    - subscribe: como `require`, e este Resource recebe refresh quando um
                 referenciado muda
    - when:      nome de um parâmetro booleano da run (`!nome` nega); a
                 declaração é descartada quando a condição é falsa

Formato de catálogo (YAML/JSON):

    params:
      passenger: true
    resources:
      - kind: package
        title: httpd
        ensure: installed
        when: passenger
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from foreman_converge.core.config.loader import load_document
from foreman_converge.core.resource.resource import ensure_list
from foreman_converge.core.resource.types import ResourceId

from .errors import InvalidDeclarationError


METAPARAMS = ("require", "before", "notify", "subscribe")


def _as_refs(value: Any, *, field_name: str, owner: str) -> List[ResourceId]:
    refs: List[ResourceId] = []
    for item in ensure_list(value):
        try:
            refs.append(ResourceId.parse(item))
        except ValueError as e:
            raise InvalidDeclarationError(f"{owner}: invalid '{field_name}' entry: {e}") from e
    return refs


@dataclass(frozen=True)
class Declaration:
    """
    Declaração imutável de um Resource.

    Campos:
        - kind / title: identidade
        - attributes: atributos desejados (podem conter `${kind[title]}`
          e `${param}`)
        - require / before / notify / subscribe: relacionamentos explícitos
        - when: condição opcional sobre parâmetros da run
    """

    kind: str
    title: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    require: Sequence[ResourceId] = ()
    before: Sequence[ResourceId] = ()
    notify: Sequence[ResourceId] = ()
    subscribe: Sequence[ResourceId] = ()
    when: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            rid = ResourceId(kind=self.kind, title=self.title)
        except ValueError as e:
            raise InvalidDeclarationError(str(e)) from e
        object.__setattr__(self, "kind", rid.kind)
        object.__setattr__(self, "attributes", dict(self.attributes))
        for name in METAPARAMS:
            object.__setattr__(self, name, tuple(_as_refs(getattr(self, name), field_name=name, owner=str(rid))))

    @property
    def id(self) -> ResourceId:
        return ResourceId(kind=self.kind, title=self.title)

    def enabled_for(self, params: Mapping[str, Any]) -> bool:
        """Avalia `when` contra os parâmetros da run."""
        if self.when is None:
            return True
        if isinstance(self.when, bool):
            return self.when
        cond = str(self.when).strip()
        negate = cond.startswith("!")
        name = cond[1:].strip() if negate else cond
        value = bool(params.get(name, False))
        return not value if negate else value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Declaration":
        if not isinstance(data, Mapping):
            raise InvalidDeclarationError(f"Resource declaration must be a mapping, got {type(data).__name__}")
        body = dict(data)
        kind = body.pop("kind", None)
        title = body.pop("title", None)
        if not kind or not title:
            raise InvalidDeclarationError(f"Resource declaration requires 'kind' and 'title': {data!r}")
        meta = {name: body.pop(name, ()) for name in METAPARAMS}
        when = body.pop("when", None)
        return cls(kind=str(kind), title=str(title), attributes=body, when=when, **meta)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind, "title": self.title}
        out.update(self.attributes)
        for name in METAPARAMS:
            refs = getattr(self, name)
            if refs:
                out[name] = [str(r) for r in refs]
        if self.when is not None:
            out["when"] = self.when
        return out


@dataclass(frozen=True)
class Catalog:
    """Catálogo carregado: parâmetros default + declarações em ordem."""

    declarations: Sequence[Declaration] = ()
    params: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "params": dict(self.params),
            "resources": [d.to_dict() for d in self.declarations],
        }


def parse_catalog(data: Mapping[str, Any]) -> Catalog:
    params = data.get("params") or {}
    if not isinstance(params, Mapping):
        raise InvalidDeclarationError("Catalog 'params' must be a mapping")
    raw = data.get("resources") or []
    if not isinstance(raw, list):
        raise InvalidDeclarationError("Catalog 'resources' must be a list")
    return Catalog(declarations=tuple(Declaration.from_dict(item) for item in raw), params=dict(params))


def load_catalog(path: Union[str, Path]) -> Catalog:
    """
    Carrega um catálogo YAML/JSON.

    Raises:
        DefaultsNotFoundError / UnsupportedConfigFormatError /
        InvalidConfigRootTypeError: problemas de arquivo (camada de config).
        InvalidDeclarationError: estrutura de catálogo inválida.
    """
    return parse_catalog(load_document(path))

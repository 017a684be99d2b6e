# tests/core/config/test_config_merge.py
"""
Testes da política de deep-merge de configuração.

Os testes asseguram que:
- valores escalares são sobrescritos
- dicionários são mesclados de forma recursiva
- listas são sobrescritas integralmente
- `None` no override remove a chave
- conflitos de tipo são rejeitados explicitamente
- objetos de entrada não são mutados

Decisões arquiteturais:
    - O merge é determinístico e puramente funcional
    - int e float são intercambiáveis (ex.: `timeout_s`); bool não
"""

import pytest

try:
    from foreman_converge.core.config.merge import deep_merge
    from foreman_converge.core.config.errors import ConfigTypeConflictError
except Exception as e:  # noqa: BLE001
    deep_merge = None
    ConfigTypeConflictError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing deep_merge. Import error: {_IMPORT_ERR}")


def test_merge_simple_override_does_not_mutate_inputs():
    _require_imports()
    base = {"a": 1, "b": 2}
    override = {"b": 99}

    out = deep_merge(base, override)

    assert out == {"a": 1, "b": 99}
    assert base == {"a": 1, "b": 2}
    assert override == {"b": 99}


def test_merge_nested_dict():
    _require_imports()
    base = {"engine": {"workers": 1, "noop": False}}
    override = {"engine": {"workers": 8}}

    assert deep_merge(base, override) == {"engine": {"workers": 8, "noop": False}}


def test_merge_list_override_total():
    """Listas não são concatenadas: o override substitui a lista inteira."""
    _require_imports()
    base = {"groups": ["apache", "puppet"]}
    override = {"groups": ["foreman"]}

    assert deep_merge(base, override) == {"groups": ["foreman"]}


def test_merge_none_removes_key():
    _require_imports()
    base = {"engine": {"workers": 1, "timeout_s": 30}}

    assert deep_merge(base, {"engine": {"timeout_s": None}}) == {"engine": {"workers": 1}}


def test_merge_numeric_types_are_compatible():
    _require_imports()
    assert deep_merge({"timeout_s": 30}, {"timeout_s": 12.5}) == {"timeout_s": 12.5}


def test_merge_type_conflict_raises():
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"noop": False}}, {"engine": {"noop": "yes"}})

    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"workers": 1}}, {"engine": {"workers": True}})


def test_merge_requires_dict_root():
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"a": 1}, ["not", "a", "dict"])

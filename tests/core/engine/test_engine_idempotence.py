# tests/core/engine/test_engine_idempotence.py
"""
Idempotência: uma segunda run sem mudança externa não altera nada.

Probe → comparação → apply somente se diferente; depois de uma run
bem-sucedida, todo Resource deve terminar `unchanged` e nenhum refresh
deve ser disparado.
"""

from foreman_converge.core.graph.declarations import Declaration
from foreman_converge.core.resource.types import Outcome


def test_second_run_is_all_unchanged_with_dummies(converge, lab):
    decls = [
        lab.decl("conf", value="a", notify=["dummy[svc]"]),
        lab.decl("svc", value="running"),
    ]

    first = converge(decls, kinds=lab.kinds)
    assert first.changed == ["dummy[conf]", "dummy[svc]"]
    assert first.refreshed == ["dummy[svc]"]

    lab.journal.clear()
    second = converge(decls, kinds=lab.kinds)

    assert second.unchanged == ["dummy[conf]", "dummy[svc]"]
    assert second.refreshed == []
    assert lab.journal == []


def test_second_run_is_all_unchanged_on_filesystem(converge, tmp_path):
    decls = [
        Declaration(kind="directory", title="/etc/foreman", attributes={"mode": "0750"}),
        Declaration(kind="file", title="/etc/foreman/settings.yaml", attributes={"content": ":a: 1\n", "mode": "0640"}),
        Declaration(kind="package", title="foreman"),
    ]

    converge(decls)
    second = converge(decls)

    assert {r.outcome for r in second.results.values()} == {Outcome.UNCHANGED}


def test_external_drift_is_corrected(converge, tmp_path):
    decls = [
        Declaration(kind="directory", title="/etc/foreman"),
        Declaration(kind="file", title="/etc/foreman/settings.yaml", attributes={"content": "good\n"}),
    ]
    converge(decls)
    (tmp_path / "etc/foreman/settings.yaml").write_text("drifted\n", encoding="utf-8")

    report = converge(decls)

    assert report.changed == ["file[/etc/foreman/settings.yaml]"]
    assert report["file[/etc/foreman/settings.yaml]"].changes == {"content": {"from": "drifted\n", "to": "good\n"}}
    assert (tmp_path / "etc/foreman/settings.yaml").read_text(encoding="utf-8") == "good\n"

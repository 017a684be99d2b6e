# tests/core/engine/test_engine_failures.py
"""
Testes da política de falhas do Engine.

Uma falha de probe ou apply é fatal apenas para a subárvore do Resource:
os descendentes terminam `skipped` e ramos sem relação continuam.

Os testes asseguram que:
- o Resource que falha é marcado FAILED com payload de erro canônico
- descendentes diretos e transitivos são SKIPPED, com o motivo
- Resources sem relação são aplicados normalmente
- exceções inesperadas viram ENGINE_EXECUTION_ERROR
- o código de saída é não zero

Limites explícitos:
    - Não valida refresh (ver test_engine_refresh.py)
"""

from foreman_converge.core.errors import (
    ENGINE_EXECUTION_ERROR,
    RESOURCE_APPLY_FAILED,
    RESOURCE_PROBE_FAILED,
)
from foreman_converge.core.graph.declarations import Declaration
from foreman_converge.core.resource.types import Outcome


def _chain(lab, fail):
    return [
        lab.decl("a", value=1),
        lab.decl("b", value=1, fail=fail, require=["dummy[a]"]),
        lab.decl("c", value=1, require=["dummy[b]"]),
        lab.decl("e", value=1, require=["dummy[c]"]),
        lab.decl("unrelated", value=1),
    ]


def test_apply_failure_skips_only_the_subtree(converge, lab):
    report = converge(_chain(lab, "apply"), kinds=lab.kinds)

    assert report.outcome("dummy[a]") is Outcome.CHANGED
    assert report.outcome("dummy[b]") is Outcome.FAILED
    assert report.outcome("dummy[c]") is Outcome.SKIPPED
    assert report.outcome("dummy[e]") is Outcome.SKIPPED
    assert report.outcome("dummy[unrelated]") is Outcome.CHANGED

    error = report["dummy[b]"].payload["error"]
    assert error["type"] == RESOURCE_APPLY_FAILED
    assert error["details"]["resource"] == "dummy[b]"

    assert report["dummy[c]"].payload == {
        "skip_reason": "dependency",
        "dependency": "dummy[b]",
        "dependency_outcome": "failed",
    }
    assert report["dummy[e]"].payload["dependency_outcome"] == "skipped"
    assert "dummy[c]" not in lab.applied()
    assert report.exit_code == 2
    assert not report.ok


def test_probe_failure_is_reported_and_nothing_applied(converge, lab):
    report = converge(_chain(lab, "probe"), kinds=lab.kinds)

    assert report["dummy[b]"].payload["error"]["type"] == RESOURCE_PROBE_FAILED
    assert "dummy[b]" not in lab.applied()
    assert report.skipped == ["dummy[c]", "dummy[e]"]


def test_unexpected_exception_is_wrapped(converge, lab):
    report = converge(_chain(lab, "crash"), kinds=lab.kinds)

    error = report["dummy[b]"].payload["error"]
    assert error["type"] == ENGINE_EXECUTION_ERROR
    assert error["details"]["exc_type"] == "RuntimeError"
    assert "boom" in error["details"]["exc_message"]


def test_failures_are_logged(converge, lab, run_ctx):
    converge(_chain(lab, "apply"), kinds=lab.kinds)

    levels = {e["resource_id"]: e["level"] for e in run_ctx.events if e["resource_id"] and e["level"] != "DEBUG"}
    assert levels["dummy[b]"] == "ERROR"
    assert levels["dummy[c]"] == "WARNING"
    assert levels["dummy[a]"] == "INFO"


def test_resource_hint_reaches_the_report(converge):
    """
    O `hint` levantado pelo tipo de Resource substitui o padrão da fábrica.
    """
    decls = [Declaration(kind="file", title="/missing/parent.conf", attributes={"content": "x\n"})]

    report = converge(decls)

    error = report["file[/missing/parent.conf]"].payload["error"]
    assert error["type"] == RESOURCE_APPLY_FAILED
    assert error["hint"] == "Declare o diretório pai como `directory` (autorequire)."


def test_undecodable_file_is_probe_failure(converge, tmp_path):
    (tmp_path / "etc").mkdir()
    (tmp_path / "etc/x.bin").write_bytes(b"\xff\xfe\x00bad")
    decls = [Declaration(kind="file", title="/etc/x.bin", attributes={"content": "text\n"})]

    report = converge(decls)

    error = report["file[/etc/x.bin]"].payload["error"]
    assert error["type"] == RESOURCE_PROBE_FAILED
    assert error["hint"] == "O conteúdo gerenciado deve ser texto UTF-8."

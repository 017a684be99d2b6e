# tests/cli/test_cli_main.py
"""
Testes da linha de comando (`foreman-converge`).

Todos os testes usam `--in-memory` e `--root tmp_path`: nenhum pacote,
serviço ou arquivo real do host é tocado.

Exit codes verificados:
    - 0: convergido
    - 2: um ou mais Resources falharam
    - 3: erro de catálogo, configuração ou grafo (nenhum apply)
"""

import json
from pathlib import Path

import pytest

from foreman_converge.cli import main, parse_param

CATALOG = str(Path(__file__).resolve().parents[2] / "catalogs" / "foreman.yaml")
DEFAULTS = str(Path(__file__).resolve().parents[2] / "config" / "defaults.yaml")


def _write(path: Path, text: str) -> str:
    path.write_text(text, encoding="utf-8")
    return str(path)


@pytest.mark.parametrize(
    "raw, expected",
    [("ssl=false", ("ssl", False)), ("workers=3", ("workers", 3)), ("url=https://x", ("url", "https://x")), ("empty=", ("empty", ""))],
)
def test_parse_param(raw, expected):
    assert parse_param(raw) == expected


def test_full_run_writes_manifest_and_report(tmp_path, capsys):
    manifest_path = tmp_path / "out" / "manifest.json"
    report_path = tmp_path / "out" / "report.md"
    root = tmp_path / "node"
    root.mkdir()

    rc = main([
        CATALOG,
        "--defaults", DEFAULTS,
        "--in-memory",
        "--root", str(root),
        "--param", "selinux=false",
        "--manifest", str(manifest_path),
        "--report", str(report_path),
    ])

    out = capsys.readouterr().out
    assert rc == 0
    assert "changed   package[foreman]:" in out
    assert "service[httpd]: changed ensure, enable (refreshed)" in out
    assert "Summary: unchanged=" in out
    assert "selboolean[httpd_can_network_connect]" not in out

    manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    assert manifest["run"]["version"]
    assert len(manifest["inputs"]["config_hash"]) == 64
    assert manifest["resources"]["package[foreman]"]["status"] == "changed"
    assert manifest["events"][-1]["event_type"] == "run_finished"

    report = report_path.read_text(encoding="utf-8")
    assert report.startswith("# Convergence Report")
    assert (root / "etc/foreman/settings.yaml").exists()


def test_resource_failure_exits_2(tmp_path, capsys):
    # selinux=true em host sem o boolean definido: falha de probe
    rc = main([CATALOG, "--in-memory", "--root", str(tmp_path)])

    out = capsys.readouterr().out
    assert rc == 2
    assert "failed    selboolean[httpd_can_network_connect]" in out


def test_noop_flag(tmp_path, capsys):
    rc = main([CATALOG, "--in-memory", "--root", str(tmp_path), "--noop", "--param", "selinux=false"])

    out = capsys.readouterr().out
    assert rc == 0
    assert "noop: would change" in out
    assert out.rstrip().endswith("(noop)")
    assert list(tmp_path.iterdir()) == []


def test_duplicate_identity_exits_3(tmp_path, capsys):
    catalog = _write(tmp_path / "dup.yaml", """\
resources:
  - kind: package
    title: foreman
  - kind: Package
    title: foreman
""")

    rc = main([catalog, "--in-memory", "--root", str(tmp_path)])

    assert rc == 3
    assert "package[foreman]" in capsys.readouterr().err


def test_cycle_exits_3_before_any_apply(tmp_path, capsys):
    catalog = _write(tmp_path / "cycle.yaml", """\
resources:
  - kind: directory
    title: /a
    require: directory[/b]
  - kind: directory
    title: /b
    require: directory[/a]
""")
    root = tmp_path / "root"
    root.mkdir()

    rc = main([catalog, "--in-memory", "--root", str(root)])

    assert rc == 3
    assert "Cycle detected" in capsys.readouterr().err
    assert list(root.iterdir()) == []


@pytest.mark.parametrize(
    "name, text",
    [
        ("list.yaml", "- not\n- a mapping\n"),
        ("bad_resources.yaml", "resources: {kind: package}\n"),
        ("unknown.yaml", "resources:\n  - kind: cron\n    title: nightly\n"),
        ("unresolved.yaml", "resources:\n  - kind: service\n    title: x\n    require: package[ghost]\n"),
        ("broken.yaml", "resources: [\n"),
    ],
)
def test_invalid_catalogs_exit_3(tmp_path, capsys, name, text):
    rc = main([_write(tmp_path / name, text), "--in-memory", "--root", str(tmp_path)])

    assert rc == 3
    assert capsys.readouterr().err.startswith("ERROR:")


def test_missing_catalog_exits_3(tmp_path, capsys):
    assert main([str(tmp_path / "nope.yaml"), "--in-memory", "--root", str(tmp_path)]) == 3


def test_invalid_workers_exit_3(tmp_path, capsys):
    rc = main([CATALOG, "--in-memory", "--root", str(tmp_path), "--workers", "0", "--param", "selinux=false"])

    assert rc == 3
    err = capsys.readouterr().err
    assert "engine.workers" in err
    assert "ENGINE_CONFIGURATION_ERROR" in err
    assert "HINT: Revise a seção `engine`" in err

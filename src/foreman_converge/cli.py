"""
foreman-converge — linha de comando

Carrega configuração e catálogo, constrói o grafo e executa uma run de
convergência contra o host local (ou um host simulado em memória).

Exit codes:
  0 = convergido (nenhum Resource falhou)
  2 = um ou mais Resources falharam
  3 = erro de catálogo, configuração ou grafo (nenhum apply executado)
"""

from __future__ import annotations

import argparse
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml  # PyYAML

from foreman_converge import __version__
from foreman_converge.backends.host import InMemoryHost
from foreman_converge.backends.system import SystemHost
from foreman_converge.core.config import ConfigError, compute_config_hash, compute_hash, deep_merge, load_config
from foreman_converge.core.engine.engine import ConvergenceEngine
from foreman_converge.core.engine.report import RunReport
from foreman_converge.core.errors import engine_configuration_error
from foreman_converge.core.exceptions import EngineConfigurationError
from foreman_converge.core.graph.builder import build_graph
from foreman_converge.core.graph.declarations import load_catalog
from foreman_converge.core.graph.errors import GraphError
from foreman_converge.core.resource.context import NodeContext
from foreman_converge.core.run_context import RunContext
from foreman_converge.core.traceability import create_manifest, save_manifest
from foreman_converge.report.report_md import generate_report_md


EXIT_ERROR = 3


def eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def parse_param(raw: str) -> tuple:
    """`key=value`; o valor é interpretado como YAML (`true`, `3`, `[a, b]`)."""
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    key, value = raw.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError(f"empty parameter name in {raw!r}")
    return key, yaml.safe_load(value) if value else ""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="foreman-converge",
        description="Converge a host to the state declared in a resource catalog.",
        epilog="Exit codes: 0 converged, 2 resource failures, 3 catalog/config/graph error.",
    )
    ap.add_argument("catalog", help="Path to the resource catalog (YAML/JSON)")
    ap.add_argument("--defaults", help="Path to the defaults config (YAML/JSON)")
    ap.add_argument("--local", help="Optional local override config, merged over defaults")
    ap.add_argument("--root", help="Filesystem root for file/directory resources (default: config `root` or /)")
    ap.add_argument("--noop", action="store_true", help="Probe and report without applying")
    ap.add_argument("--workers", type=int, help="Concurrent workers (overrides engine.workers)")
    ap.add_argument("--timeout", type=float, help="Run timeout in seconds (overrides engine.timeout_s)")
    ap.add_argument("--in-memory", action="store_true", help="Use a simulated in-memory host")
    ap.add_argument("--manifest", help="Write the run manifest (JSON) to this path")
    ap.add_argument("--report", help="Write the markdown report to this path")
    ap.add_argument(
        "--param",
        action="append",
        type=parse_param,
        default=[],
        metavar="KEY=VALUE",
        help="Run parameter, overrides catalog and config params (repeatable)",
    )
    return ap.parse_args(argv)


def _effective_config(args: argparse.Namespace) -> Dict[str, Any]:
    config: Dict[str, Any] = {}
    if args.defaults:
        config = load_config(defaults_path=args.defaults, local_path=args.local)

    engine: Dict[str, Any] = {}
    if args.noop:
        engine["noop"] = True
    if args.workers is not None:
        engine["workers"] = args.workers
    if args.timeout is not None:
        engine["timeout_s"] = args.timeout
    if engine:
        config = deep_merge(config, {"engine": engine})
    return config


def _print_report(report: RunReport) -> None:
    for rid, result in report.results.items():
        flag = " (refreshed)" if result.refreshed else ""
        print(f"{result.outcome.value:<9} {rid}: {result.summary}{flag}")
    summary = " ".join(f"{k}={v}" for k, v in report.counts().items())
    print(f"Summary: {summary}" + (" (noop)" if report.noop else ""))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = _effective_config(args)
        catalog = load_catalog(args.catalog)
    except (ConfigError, GraphError, yaml.YAMLError) as ex:
        eprint(f"ERROR: {ex}")
        return EXIT_ERROR

    params: Dict[str, Any] = dict(catalog.params)
    params.update(config.get("params") or {})
    params.update(dict(args.param))

    try:
        graph = build_graph(catalog.declarations, params=params)
    except GraphError as ex:
        eprint(f"ERROR: {ex}")
        return EXIT_ERROR

    host = InMemoryHost() if args.in_memory else SystemHost()
    root = Path(args.root or config.get("root") or "/")
    node = NodeContext(host=host, root=root, facts=config.get("facts") or {}, params=params)

    run_id = uuid.uuid4().hex
    started_at = datetime.now(timezone.utc)
    manifest = create_manifest(
        run_id=run_id,
        started_at=started_at,
        version=__version__,
        config_hash=compute_config_hash(config),
        catalog_hash=compute_hash(catalog.to_dict()),
    )
    ctx = RunContext(
        run_id=run_id,
        created_at=started_at,
        config=config,
        manifest=manifest,
        meta={"catalog": str(args.catalog), "root": str(root)},
    )

    try:
        report = ConvergenceEngine(graph=graph, node=node, ctx=ctx).converge()
    except EngineConfigurationError as ex:
        extra = {"hint": ex.hint} if ex.hint else {}
        error = engine_configuration_error(message=ex.message, details=ex.details, **extra)
        eprint(f"ERROR [{error.type}]: {error.message} {error.details}")
        eprint(f"HINT: {error.hint}")
        return EXIT_ERROR

    _print_report(report)

    if args.manifest:
        save_manifest(manifest, Path(args.manifest))
    if args.report:
        out = Path(args.report)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(generate_report_md(manifest.to_dict()), encoding="utf-8")

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())

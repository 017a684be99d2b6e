"""
src/foreman_converge/report/report_md.py

Gerador canônico de `report.md` (v1) — Foreman Converge

Regras:
- O report.md é derivado EXCLUSIVAMENTE do Manifest final (dict).
- Não infere, não recalcula, não consulta o host.
- Mesmo Manifest => mesmo report.md (Resources na ordem registrada no
  Manifest, demais mapeamentos com ordenação estável).

Estrutura mínima obrigatória:
# Convergence Report

## Summary
## Resources
## Refreshes
## Failures
## Traceability
## Run Metadata
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple


REQUIRED_SECTIONS: List[str] = [
    "# Convergence Report",
    "## Summary",
    "## Resources",
    "## Refreshes",
    "## Failures",
    "## Traceability",
    "## Run Metadata",
]

OUTCOMES: Tuple[str, ...] = ("unchanged", "changed", "failed", "skipped")


def _as_pretty_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, indent=2)


def _require_manifest(manifest: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(manifest, dict) or not manifest:
        raise ValueError("Manifest is required to generate report.md")
    return manifest


def _section(manifest: Dict[str, Any], key: str, kind: type) -> Any:
    value = manifest.get(key)
    return value if isinstance(value, kind) else kind()


def _describe(entry: Dict[str, Any]) -> str:
    status = entry.get("status", "unknown")
    if status == "skipped":
        return f"skipped ({entry.get('skip_reason') or 'unknown reason'})"
    if status == "failed":
        error = entry.get("error") if isinstance(entry.get("error"), dict) else {}
        return f"failed: {error.get('message', 'no message')}"
    summary = entry.get("summary")
    return f"{status}: {summary}" if summary else status


def generate_report_md(manifest: Dict[str, Any]) -> str:
    """Gera o conteúdo completo do report.md a partir do Manifest final."""
    manifest = _require_manifest(manifest)

    run = _section(manifest, "run", dict)
    inputs = _section(manifest, "inputs", dict)
    resources = _section(manifest, "resources", dict)
    events = _section(manifest, "events", list)

    lines: List[str] = []
    lines.append("# Convergence Report\n")

    # Summary
    lines.append("## Summary")
    lines.append(f"- **Run ID**: `{run.get('run_id', '<unknown>')}`")
    lines.append(f"- **Started At (UTC)**: `{run.get('started_at', '<unknown>')}`")
    lines.append(f"- **Finished At (UTC)**: `{run.get('finished_at', '<unknown>')}`")
    lines.append(f"- **Version**: `{run.get('version', '<unknown>')}`")
    summary = run.get("summary") if isinstance(run.get("summary"), dict) else None
    if summary:
        for key in OUTCOMES + ("refreshed",):
            lines.append(f"- **{key}**: `{summary.get(key, 0)}`")
    else:
        lines.append("\nNo run summary recorded (run did not finish).")
    lines.append("")

    # Resources
    lines.append("## Resources")
    if resources:
        lines.append("| Resource | Kind | Result | Duration (ms) |")
        lines.append("|---|---|---|---|")
        for rid, entry in resources.items():
            if not isinstance(entry, dict):
                continue
            duration = entry.get("duration_ms", "")
            lines.append(f"| `{rid}` | `{entry.get('kind', 'unknown')}` | {_describe(entry)} | {duration} |")
        changed = [
            (rid, entry) for rid, entry in resources.items()
            if isinstance(entry, dict) and entry.get("changes")
        ]
        for rid, entry in changed:
            lines.append(f"\n### {rid}")
            for prop, change in sorted(entry["changes"].items()):
                if isinstance(change, dict):
                    lines.append(f"- `{prop}`: `{change.get('from')}` → `{change.get('to')}`")
    else:
        lines.append("No resources recorded in the Manifest.")
    lines.append("")

    # Refreshes
    lines.append("## Refreshes")
    refreshed = [(rid, e) for rid, e in resources.items() if isinstance(e, dict) and e.get("refreshed")]
    if refreshed:
        for rid, entry in refreshed:
            sources = ", ".join(f"`{s}`" for s in entry.get("refreshed_by", []))
            lines.append(f"- **{rid}** refreshed by {sources}")
    else:
        lines.append("No refreshes executed.")
    lines.append("")

    # Failures
    lines.append("## Failures")
    failed = [(rid, e) for rid, e in resources.items() if isinstance(e, dict) and e.get("status") == "failed"]
    if failed:
        for rid, entry in failed:
            lines.append(f"### {rid}")
            lines.append("```json")
            lines.append(_as_pretty_json(entry.get("error", {})))
            lines.append("```")
    else:
        lines.append("No failures recorded.")
    lines.append("")

    # Traceability
    lines.append("## Traceability")
    lines.append("- Source of truth: `Manifest` (final) only.")
    lines.append(f"- Events recorded: `{len(events)}`\n")

    # Run Metadata
    lines.append("## Run Metadata")
    lines.append("### run")
    lines.append("```json")
    lines.append(_as_pretty_json(run))
    lines.append("```")
    lines.append("### inputs")
    lines.append("```json")
    lines.append(_as_pretty_json(inputs))
    lines.append("```")

    content = "\n".join(lines)

    for sec in REQUIRED_SECTIONS:
        if sec not in content:
            raise RuntimeError(f"Report generation failed: missing required section: {sec}")

    return content

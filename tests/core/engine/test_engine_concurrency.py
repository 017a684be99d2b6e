# tests/core/engine/test_engine_concurrency.py
"""
Execução concorrente (`engine.workers > 1`).

Os testes asseguram que:
- nenhum Resource inicia antes de todos os seus predecessores terminarem
- ramos independentes realmente se sobrepõem no pool
- a política de falha (skip da subárvore) vale também no modo concorrente
- o resultado final é o mesmo da execução sequencial
"""

import threading
import time

import pytest

from foreman_converge.core.exceptions import EngineConfigurationError
from foreman_converge.core.resource.types import Outcome


def _fan(lab, leaves=6, sleep=0.05):
    decls = [lab.decl("root", value=1)]
    for i in range(leaves):
        decls.append(lab.decl(f"leaf{i}", value=i, sleep=sleep, require=["dummy[root]"]))
    decls.append(lab.decl("join", value=1, require=[f"dummy[leaf{i}]" for i in range(leaves)]))
    return decls


def test_edges_respected_with_pool(converge, lab, run_ctx):
    run_ctx.config["engine"]["workers"] = 4

    report = converge(_fan(lab), kinds=lab.kinds)

    assert report.order[0] == "dummy[root]"
    assert report.order[-1] == "dummy[join]"
    assert lab.applied()[0] == "dummy[root]"
    assert lab.applied()[-1] == "dummy[join]"
    assert len(report.changed) == 8
    assert report.exit_code == 0


def test_independent_branches_overlap(converge, lab, run_ctx):
    """Dois applies lentos sem relação ficam ativos ao mesmo tempo."""
    run_ctx.config["engine"]["workers"] = 2
    active = {"now": 0, "peak": 0}
    lock = threading.Lock()
    original = lab.kinds.create

    def _tracking_create(kind, title, attrs):
        resource = original(kind, title, attrs)
        apply = resource.apply

        def _apply(ctx, current, changes):
            with lock:
                active["now"] += 1
                active["peak"] = max(active["peak"], active["now"])
            try:
                time.sleep(0.1)
                apply(ctx, current, changes)
            finally:
                with lock:
                    active["now"] -= 1

        resource.apply = _apply
        return resource

    lab.kinds.create = _tracking_create
    decls = [lab.decl("a", value=1), lab.decl("b", value=1)]

    report = converge(decls, kinds=lab.kinds)

    assert report.changed == ["dummy[a]", "dummy[b]"]
    assert active["peak"] == 2


def test_failure_skips_subtree_with_pool(converge, lab, run_ctx):
    run_ctx.config["engine"]["workers"] = 3
    decls = [
        lab.decl("a", value=1, fail="apply"),
        lab.decl("a_child", value=1, require=["dummy[a]"]),
        lab.decl("b", value=1, sleep=0.02),
        lab.decl("b_child", value=1, require=["dummy[b]"]),
    ]

    report = converge(decls, kinds=lab.kinds)

    assert report.outcome("dummy[a]") is Outcome.FAILED
    assert report.outcome("dummy[a_child]") is Outcome.SKIPPED
    assert report.outcome("dummy[b_child]") is Outcome.CHANGED
    assert report.exit_code == 2


def test_same_outcomes_as_sequential(converge, lab, run_ctx):
    decls = [
        lab.decl("conf", value=1, notify=["dummy[svc]"]),
        lab.decl("svc", value=1, require=["dummy[pkg]"]),
        lab.decl("pkg", value=1),
        lab.decl("broken", value=1, fail="apply"),
        lab.decl("after_broken", value=1, require=["dummy[broken]"]),
    ]
    sequential = converge(decls, kinds=lab.kinds)

    lab.world.clear()
    lab.journal.clear()
    run_ctx.config["engine"]["workers"] = 4
    concurrent = converge(decls, kinds=lab.kinds)

    assert {k: r.outcome for k, r in concurrent.results.items()} == {
        k: r.outcome for k, r in sequential.results.items()
    }
    assert concurrent.refreshed == sequential.refreshed == ["dummy[svc]"]


@pytest.mark.parametrize("workers", [0, -1, "2", True, 1.5])
def test_invalid_workers_rejected_before_any_probe(converge, lab, run_ctx, workers):
    run_ctx.config["engine"]["workers"] = workers

    with pytest.raises(EngineConfigurationError):
        converge([lab.decl("a", value=1)], kinds=lab.kinds)

    assert lab.journal == []

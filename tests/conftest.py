# tests/conftest.py
"""
Fixtures compartilhados para testes do Foreman Converge.

Este módulo define fixtures reutilizáveis que fornecem:
- configuração mínima e determinística
- contexto de execução controlado (RunContext)
- contexto de nó (NodeContext) com host em memória e raiz isolada
- Resources dummy (duck typing) para testes estruturais do grafo e do Engine

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Resources dummy não herdam de BaseResource: o Engine exige apenas o
      contrato estrutural (`id`, `desired`, `probe`, `changes`, `apply`,
      `refresh`)
    - Imports do core são realizados de forma lazy para melhorar a clareza
      de erros durante falhas

Invariantes:
    - Nenhuma fixture acessa o host real (pacotes, serviços, usuários)
    - I/O de filesystem fica restrito a `tmp_path`
    - Todas as fixtures são seguras para execução em paralelo
"""

import time
from datetime import datetime, timezone

import pytest


@pytest.fixture
def dummy_config() -> dict:
    """
    Configuração mínima e válida, já resolvida (sem loader nem merge).

    Returns:
        dict: Seções `engine` e `resources` com valores padrão.
    """
    return {
        "engine": {"workers": 1, "timeout_s": None, "noop": False, "refresh": True},
        "resources": {},
    }


@pytest.fixture
def run_ctx(dummy_config):
    """
    RunContext determinístico (run_id e created_at fixos).

    O Manifest não é anexado: testes de rastreabilidade criam o seu.
    """
    from foreman_converge.core.run_context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        meta={"source": "pytest"},
    )


@pytest.fixture
def host():
    from foreman_converge.backends.host import InMemoryHost

    return InMemoryHost()


@pytest.fixture
def node(host, tmp_path):
    """NodeContext com host em memória e raiz de filesystem em `tmp_path`."""
    from foreman_converge.core.resource.context import NodeContext

    return NodeContext(host=host, root=tmp_path, facts={"os_family": "RedHat"}, params={})


@pytest.fixture
def lab():
    """
    Laboratório de Resources dummy.

    Retorna um objeto com:
        - kinds: KindRegistry com o tipo `dummy`
        - world: estado "do host" compartilhado, por resource_id
        - journal: chamadas de apply/refresh na ordem em que ocorreram
        - decl(title, **attrs): atalho para `Declaration(kind="dummy", ...)`

    Atributos especiais do dummy (removidos do estado desejado):
        - fail: "probe" | "apply" | "crash" | "refresh"
        - sleep: segundos de espera dentro do apply

    Returns:
        _Lab: laboratório isolado por teste.
    """
    from foreman_converge.core.exceptions import ApplyFailed, ProbeFailed, RefreshFailed
    from foreman_converge.core.graph.declarations import Declaration
    from foreman_converge.core.resource.registry import KindRegistry
    from foreman_converge.core.resource.types import ResourceId

    class _DummyResource:
        def __init__(self, title, attributes, *, world, journal):
            attrs = dict(attributes or {})
            self.id = ResourceId("dummy", title)
            self.fail = attrs.pop("fail", None)
            self.sleep = float(attrs.pop("sleep", 0))
            self.desired = attrs
            self._world = world
            self._journal = journal

        def probe(self, ctx):
            if self.fail == "probe":
                raise ProbeFailed(message="cannot read state", details={"title": self.id.title})
            return dict(self._world.get(str(self.id), {}))

        def changes(self, current):
            return {k: (current.get(k), v) for k, v in self.desired.items() if current.get(k) != v}

        def apply(self, ctx, current, changes):
            self._journal.append(("apply", str(self.id)))
            if self.sleep:
                time.sleep(self.sleep)
            if self.fail == "apply":
                raise ApplyFailed(message="cannot apply", details={"title": self.id.title})
            if self.fail == "crash":
                raise RuntimeError("boom")
            self._world.setdefault(str(self.id), {}).update(self.desired)

        def refresh(self, ctx):
            self._journal.append(("refresh", str(self.id)))
            if self.fail == "refresh":
                raise RefreshFailed(message="restart failed", details={"title": self.id.title})

    class _Lab:
        def __init__(self):
            self.world = {}
            self.journal = []
            self.kinds = KindRegistry(
                {"dummy": lambda title, attrs: _DummyResource(title, attrs, world=self.world, journal=self.journal)}
            )

        def decl(self, title, *, require=(), before=(), notify=(), subscribe=(), when=None, **attrs):
            return Declaration(
                kind="dummy",
                title=title,
                attributes=attrs,
                require=require,
                before=before,
                notify=notify,
                subscribe=subscribe,
                when=when,
            )

        def applied(self):
            return [rid for op, rid in self.journal if op == "apply"]

        def refreshed(self):
            return [rid for op, rid in self.journal if op == "refresh"]

    return _Lab()


@pytest.fixture
def converge(node, run_ctx):
    """
    Atalho: constrói o grafo e executa uma run.

    Uso:
        report = converge(decls, kinds=lab.kinds)
    """
    from foreman_converge.core.engine.engine import ConvergenceEngine
    from foreman_converge.core.graph.builder import build_graph

    def _run(declarations, *, kinds=None, params=None, ctx=None, node_ctx=None):
        graph = build_graph(declarations, params=params, kinds=kinds)
        engine = ConvergenceEngine(graph=graph, node=node_ctx or node, ctx=ctx or run_ctx)
        return engine.converge()

    return _run


# =====================================================
# Config Loader fixtures
# =====================================================

@pytest.fixture
def defaults_yaml() -> str:
    """YAML de defaults semelhante a `config/defaults.yaml` do projeto."""
    return """\
root: /
engine:
  workers: 1
  timeout_s: null
  noop: false
resources:
  "service[httpd]":
    enabled: true
params:
  passenger: true
  ssl: true
"""


@pytest.fixture
def local_yaml() -> str:
    """YAML de override local: apenas o que muda em relação aos defaults."""
    return """\
engine:
  workers: 4
  timeout_s: 600
params:
  ssl: false
  db_host: db.example.com
"""

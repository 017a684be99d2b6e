# tests/core/graph/test_graph_builder.py
"""
Testes do Graph Builder.

Este módulo valida a montagem do grafo a partir de declarações:
identidades, arestas explícitas, referências implícitas e condições.

Os testes asseguram que:
- identidade duplicada é erro fatal de build
- referência (explícita ou implícita) a identidade não declarada é erro
  fatal de build
- referências implícitas viram arestas de ordenação e o valor é
  reescrito com o título referenciado
- notify/subscribe produzem arestas de refresh no sentido correto
- declarações descartadas por `when` não existem no grafo

Decisões arquiteturais:
    - Todos os erros ocorrem antes de qualquer apply (nenhum Resource é
      sequer instanciado pelo Engine)
    - Resources dummy isolam o builder dos tipos concretos
"""

import pytest

try:
    from foreman_converge.core.graph.builder import build_graph
    from foreman_converge.core.graph.errors import (
        DuplicateIdentityError,
        InvalidDeclarationError,
        UnknownResourceKindError,
        UnresolvedReferenceError,
    )
    from foreman_converge.core.graph.graph import EdgeKind
    from foreman_converge.core.graph.declarations import Declaration
    from foreman_converge.core.resource.types import ResourceId
except Exception as e:  # noqa: BLE001
    build_graph = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o builder esteja disponível para os testes.

    Falha imediatamente, apontando o módulo esperado, em vez de produzir
    erros indiretos nos testes.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing graph builder. Implement:
- src/foreman_converge/core/graph/builder.py (build_graph)
Import error: {_IMPORT_ERR}
""")


def _edge(graph, before, after):
    for e in graph.edges:
        if (str(e.before), str(e.after)) == (before, after):
            return e
    return None


def test_duplicate_identity_is_fatal(lab):
    """
    Verifica que declarar `foreman-ssl-dir` duas vezes falha no build.

    Invariantes:
        - O erro carrega a identidade duplicada
        - Nenhum apply ocorre (journal vazio)
    """
    _require_imports()
    decls = [lab.decl("foreman-ssl-dir", mode="0750"), lab.decl("foreman-ssl-dir", mode="0700")]

    with pytest.raises(DuplicateIdentityError) as exc:
        build_graph(decls, kinds=lab.kinds)

    assert exc.value.identity == "dummy[foreman-ssl-dir]"
    assert lab.journal == []


def test_same_title_different_kind_is_not_duplicate(lab):
    _require_imports()
    from foreman_converge.core.resource.registry import KindRegistry

    kinds = KindRegistry({"dummy": lambda t, a: lab.kinds.create("dummy", t, a), "other": lambda t, a: _Other(t)})
    decls = [lab.decl("foreman"), Declaration(kind="other", title="foreman")]

    graph = build_graph(decls, kinds=kinds)

    assert len(graph) == 2


class _Other:
    def __init__(self, title):
        self.id = ResourceId("other", title)
        self.desired = {}

    def probe(self, ctx):
        return {}

    def changes(self, current):
        return {}

    def apply(self, ctx, current, changes):
        return None

    def refresh(self, ctx):
        return None


def test_explicit_reference_to_undeclared_is_fatal(lab):
    _require_imports()
    decls = [lab.decl("x", require=["dummy[missing]"])]

    with pytest.raises(UnresolvedReferenceError) as exc:
        build_graph(decls, kinds=lab.kinds)

    assert exc.value.reference == "dummy[missing]"
    assert exc.value.referrer == "dummy[x]"


def test_implicit_reference_to_undeclared_is_fatal(lab):
    """Um atributo que embute `${dummy[Y]}` sem Y declarado falha no build."""
    _require_imports()
    decls = [lab.decl("x", path="${dummy[Y]}/public")]

    with pytest.raises(UnresolvedReferenceError) as exc:
        build_graph(decls, kinds=lab.kinds)

    assert exc.value.reference == "dummy[Y]"


def test_implicit_reference_becomes_edge_and_is_rewritten(lab):
    """
    Verifica a resolução de referências implícitas em tempo de build.

    Invariantes:
        - A aresta criada é de ordenação, com origem `reference`
        - O referenciado vem antes na ordem, mesmo declarado depois
        - O valor do atributo contém o título, não a referência
    """
    _require_imports()
    decls = [
        lab.decl("vhost", docroot="${dummy[/usr/share/foreman]}/public"),
        lab.decl("/usr/share/foreman"),
    ]

    graph = build_graph(decls, kinds=lab.kinds)

    edge = _edge(graph, "dummy[/usr/share/foreman]", "dummy[vhost]")
    assert edge is not None
    assert edge.kind is EdgeKind.ORDERING
    assert edge.source == "reference"
    assert [str(r) for r in graph.order] == ["dummy[/usr/share/foreman]", "dummy[vhost]"]
    assert graph.get(ResourceId("dummy", "vhost")).desired["docroot"] == "/usr/share/foreman/public"


def test_params_are_rendered(lab):
    _require_imports()
    decls = [lab.decl("settings", content="url: ${foreman_url}\nssl: ${ssl}\nkeep: ${unknown}")]

    graph = build_graph(decls, params={"foreman_url": "https://f.example.com", "ssl": True}, kinds=lab.kinds)

    content = graph.get(ResourceId("dummy", "settings")).desired["content"]
    assert content == "url: https://f.example.com\nssl: true\nkeep: ${unknown}"


def test_referenced_title_with_dollar_is_not_rendered_as_param(lab):
    """
    O título interpolado por uma referência é literal: um `$nome` nele não
    é substituído pelos parâmetros da run.
    """
    _require_imports()
    decls = [
        lab.decl("/srv/$site"),
        lab.decl("vhost", docroot="${dummy[/srv/$site]}/public", name="${site}"),
    ]

    graph = build_graph(decls, params={"site": "foreman"}, kinds=lab.kinds)

    desired = graph.get(ResourceId("dummy", "vhost")).desired
    assert desired["docroot"] == "/srv/$site/public"
    assert desired["name"] == "foreman"


def test_notify_and_subscribe_are_refresh_edges(lab):
    _require_imports()
    decls = [
        lab.decl("conf", notify=["dummy[svc]"]),
        lab.decl("pkg"),
        lab.decl("svc", subscribe=["dummy[pkg]"]),
    ]

    graph = build_graph(decls, kinds=lab.kinds)

    assert _edge(graph, "dummy[conf]", "dummy[svc]").kind is EdgeKind.REFRESH
    assert _edge(graph, "dummy[pkg]", "dummy[svc]").kind is EdgeKind.REFRESH
    assert graph.refresh_targets(ResourceId("dummy", "conf")) == [ResourceId("dummy", "svc")]


def test_refresh_edge_wins_over_ordering_for_same_pair(lab):
    _require_imports()
    decls = [lab.decl("conf", before=["dummy[svc]"], notify=["dummy[svc]"]), lab.decl("svc")]

    graph = build_graph(decls, kinds=lab.kinds)

    pairs = [(str(e.before), str(e.after)) for e in graph.edges]
    assert pairs.count(("dummy[conf]", "dummy[svc]")) == 1
    assert _edge(graph, "dummy[conf]", "dummy[svc]").kind is EdgeKind.REFRESH


def test_when_drops_declarations_and_their_references(lab):
    """Uma referência a uma declaração descartada por `when` não resolve."""
    _require_imports()
    decls = [lab.decl("ssl-dir", when="ssl"), lab.decl("vhost", require=["dummy[ssl-dir]"])]

    assert len(build_graph([decls[0]], params={"ssl": False}, kinds=lab.kinds)) == 0
    with pytest.raises(UnresolvedReferenceError):
        build_graph(decls, params={"ssl": False}, kinds=lab.kinds)

    graph = build_graph(decls, params={"ssl": True}, kinds=lab.kinds)
    assert len(graph) == 2


def test_unknown_kind_is_fatal(lab):
    _require_imports()
    with pytest.raises(UnknownResourceKindError):
        build_graph([Declaration(kind="mount", title="/srv")], kinds=lab.kinds)


def test_unknown_attribute_is_invalid_declaration():
    """Tipos concretos rejeitam atributos desconhecidos no build."""
    _require_imports()
    with pytest.raises(InvalidDeclarationError):
        build_graph([Declaration(kind="package", title="httpd", attributes={"colour": "red"})])

# tests/core/graph/test_autorequire.py
"""
Testes de autorequire com os tipos concretos.

Autorequire cria arestas de ordenação implícitas:
    - directory pai → file/directory filho
    - user (owner/group) → file/directory
    - package de mesmo título → service

Nunca referencia Resources não declarados e nunca contradiz uma relação
explícita no sentido oposto.
"""

from foreman_converge.core.graph.builder import build_graph
from foreman_converge.core.graph.declarations import Declaration
from foreman_converge.core.resource.types import ResourceId


def _pairs(graph, source=None):
    return {
        (str(e.before), str(e.after))
        for e in graph.edges
        if source is None or e.source == source
    }


def test_parent_directory_is_autorequired_regardless_of_declaration_order():
    decls = [
        Declaration(kind="file", title="/etc/foreman/settings.yaml", attributes={"content": "x"}),
        Declaration(kind="directory", title="/etc/foreman"),
    ]

    graph = build_graph(decls)

    assert ("directory[/etc/foreman]", "file[/etc/foreman/settings.yaml]") in _pairs(graph, "autorequire")
    assert [str(r) for r in graph.order] == ["directory[/etc/foreman]", "file[/etc/foreman/settings.yaml]"]


def test_undeclared_parent_is_ignored():
    graph = build_graph([Declaration(kind="directory", title="/etc/foreman/ssl")])

    assert graph.edges == ()


def test_owner_user_is_autorequired():
    decls = [
        Declaration(kind="file", title="/etc/foreman/database.yml", attributes={"owner": "foreman", "group": "foreman"}),
        Declaration(kind="user", title="foreman"),
    ]

    graph = build_graph(decls)

    assert _pairs(graph, "autorequire") == {("user[foreman]", "file[/etc/foreman/database.yml]")}


def test_service_autorequires_package_of_same_title():
    decls = [
        Declaration(kind="service", title="httpd", attributes={"ensure": "running"}),
        Declaration(kind="package", title="httpd"),
    ]

    graph = build_graph(decls)

    assert graph.order == (ResourceId("package", "httpd"), ResourceId("service", "httpd"))


def test_explicit_reverse_relation_suppresses_autorequire():
    """Um `before` explícito no sentido oposto não vira ciclo."""
    decls = [
        Declaration(kind="service", title="httpd", before=["package[httpd]"]),
        Declaration(kind="package", title="httpd"),
    ]

    graph = build_graph(decls)

    assert _pairs(graph) == {("service[httpd]", "package[httpd]")}


def test_explicit_relation_is_not_duplicated_by_autorequire():
    decls = [
        Declaration(kind="directory", title="/etc/foreman"),
        Declaration(kind="directory", title="/etc/foreman/ssl", require=["directory[/etc/foreman]"]),
    ]

    graph = build_graph(decls)

    assert len(graph.edges) == 1
    assert graph.edges[0].source == "require"

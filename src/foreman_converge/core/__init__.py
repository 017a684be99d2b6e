# src/foreman_converge/core/__init__.py
"""
Core do Foreman Converge.

Este pacote contém a implementação canônica e independente de backends
do motor de convergência, reunindo as responsabilidades essenciais para
declaração, planejamento, aplicação e rastreabilidade de Resources.

O core é projetado para ser:
    - determinístico
    - testável de forma isolada
    - livre de dependências de um host real (backends são injetados)

Subpacotes:
    - config        → configuração efetiva (defaults + local)
    - resource      → contrato de Resource, tipos de resultado e contexto
    - graph         → declarações, builder do grafo e ordenação topológica
    - engine        → convergência e propagação de refresh
    - traceability  → Manifest v1 e Event Log
"""

# src/foreman_converge/core/graph/__init__.py
"""
Grafo de dependências do Foreman Converge.

Este pacote transforma declarações de Resources em um grafo explícito,
validado e ordenado, pronto para a convergência.

Componentes principais:
    - declarations → `Declaration` (intake) e carregamento de catálogos YAML/JSON
    - references   → extração e interpolação de referências `${kind[title]}`
    - graph        → `Edge`, `EdgeKind` e `Graph` (somente leitura)
    - builder      → `build_graph`: identidades, arestas explícitas, implícitas
                     e autorequire
    - planner      → ordenação topológica determinística e detecção de ciclos
    - errors       → erros fatais de build

Princípios fundamentais:
    - Referências implícitas viram arestas tipadas no build, nunca no apply
    - Empates na ordenação são resolvidos pela ordem de declaração
    - Qualquer erro estrutural interrompe o build antes de qualquer apply

Limites explícitos:
    - Não executa Resources
    - Não propaga refresh
"""

# src/foreman_converge/__init__.py
"""
Foreman Converge — motor de convergência declarativa para hosts Foreman.

Este pacote raiz define o namespace público do Foreman Converge, um motor
que recebe declarações de estado desejado (pacotes, arquivos, diretórios,
serviços, usuários, booleans SELinux, comandos) e conduz o host até esse
estado de forma determinística, idempotente e rastreável.

Princípios centrais:
    - O catálogo é um grafo explícito de Resources
    - Dependências implícitas são resolvidas em tempo de build, nunca no apply
    - A execução é determinística (empates resolvidos por ordem de declaração)
    - Cada Resource é aplicado no máximo uma vez por run
    - Refresh (ex.: restart) ocorre uma única vez, após o passe completo

Arquitetura em alto nível:
    - core.config       → carregamento, merge e hashing de configuração
    - core.resource     → contrato de Resource, contexto de nó e registros
    - core.graph        → declarações, builder do grafo e planner topológico
    - core.engine       → convergência, propagação de refresh e RunReport
    - core.traceability → Manifest e Event Log para auditoria
    - resources         → tipos concretos de Resource (file, package, ...)
    - backends          → colaboradores externos do host (memória, sistema)

Limites explícitos:
    - Não é uma linguagem geral de gerenciamento de configuração
    - Não é um engine de templates nem um gerenciador de pacotes
"""
# src/foreman_converge/__init__.py

__version__ = "0.1.0"

__all__ = ["__version__"]

# src/foreman_converge/core/engine/__init__.py
"""
Engine de convergência do Foreman Converge.

Componentes:
    - engine  → `ConvergenceEngine`: passe topológico (sequencial ou com
                pool limitado), políticas de skip/noop/timeout
    - refresh → `RefreshQueue`: sinais de refresh deduplicados por alvo
    - report  → `RunReport`: resultado agregado e código de saída
"""

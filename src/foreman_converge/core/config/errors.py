# src/foreman_converge/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Foreman Converge.

Este módulo define a hierarquia oficial de exceções utilizadas durante
o carregamento, validação estrutural e resolução de configuração, assim
como durante a leitura de documentos de catálogo (mesmo formato de arquivo).

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Erros estruturais são tratados como falhas fatais
    - Nenhuma run é iniciada com configuração inválida

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção aqui representa falha de um Resource
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração.

    Permite capturar de forma genérica qualquer falha de carregamento ou
    merge, distinguindo-a de falhas de build do grafo e de convergência.
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando um documento obrigatório (defaults ou catálogo)
    não existe no caminho especificado.

    Limites explícitos:
        - Não tenta inferir ou criar o arquivo automaticamente
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando a extensão do documento não é suportada.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz do documento não é um
    dicionário (`dict`).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"workers": 4}}
        - override: {"engine": "fast"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """

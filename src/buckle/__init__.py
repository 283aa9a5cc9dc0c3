# src/buckle/__init__.py
"""
buckle — bootstrapper declarativo de máquinas baseado em pacotes.

Este pacote raiz define o namespace público do buckle. Uma árvore de
configuração descreve valores globais (config e secrets) e um conjunto de
pacotes; cada pacote declara dependências, arquivos, templates e tasks.

Princípios centrais:
    - A ordem de aplicação é derivada de um grafo explícito de dependências
    - A ordem é determinística para a mesma árvore de configuração
    - Config e secrets são camadas: o pacote sobrescreve o global, nunca o muta
    - Plan descreve; apply executa (com retry por pacote)

Arquitetura em alto nível:
    - core.settings → carregamento, merge e hashing dos settings do buckle
    - core.values   → Config Store e Secret Store
    - core.files    → File Catalog (cópias e templates)
    - core.tasks    → Task Catalog (scripts executados por interpretador)
    - core.package  → modelo de pacote e resolução de dependências
    - core.engine   → plan/apply, contexto de execução e retry
    - cli           → adapter de linha de comando (plan/apply)

Limites explícitos:
    - Não executa pacotes em paralelo
    - Não desfaz pacotes já aplicados quando um pacote posterior falha
"""

__version__ = "0.3.0"

__all__ = ["__version__"]

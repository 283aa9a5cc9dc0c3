# src/buckle/core/__init__.py
"""
Core do buckle.

Este pacote contém a implementação canônica e independente da CLI:
resolução de pacotes, camadas de valores e o pipeline de aplicação.

O core é projetado para ser:
    - determinístico
    - testável de forma isolada (interpretadores e sleep são injetáveis)
    - livre de saída humana: progresso é exposto como eventos estruturados

Componentes principais:
    - settings → settings efetivos (defaults + arquivo local), com hash
    - values   → config e secrets (`key=value`), de arquivos ou scripts
    - files    → enumeração e materialização de grupos de arquivos
    - tasks    → enumeração e execução de scripts de pacote
    - package  → manifest, política de retry e ordenação topológica
    - engine   → plan/apply com RunContext

Limites explícitos:
    - Não faz parsing de argumentos nem imprime progresso
    - Não configura logging do processo
"""

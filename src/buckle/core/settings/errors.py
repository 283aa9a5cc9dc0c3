# src/buckle/core/settings/errors.py
"""
Exceções da camada de settings do buckle.

Settings são as opções da própria ferramenta (nome do manifest, sufixo de
template, tabela de interpretadores, política de retry padrão), e não os
valores de config/secrets consumidos pelos pacotes.

Invariantes:
    - Todas as exceções de settings herdam de `SettingsError`
    - Nenhuma exceção representa erro de aplicação de pacote
"""


class SettingsError(Exception):
    """
    Exceção base para erros relacionados aos settings do buckle.

    Permite captura genérica de falhas de settings, distinguindo-as
    de falhas durante a resolução ou aplicação de pacotes.
    """


class SettingsNotFoundError(SettingsError):
    """
    Exceção levantada quando um arquivo de settings explicitamente
    informado não existe.

    Decisões arquiteturais:
        - Os defaults embutidos dispensam arquivo, mas um caminho informado
          pelo operador precisa existir
        - Não há fallback silencioso para os defaults
    """


class UnsupportedSettingsFormatError(SettingsError):
    """
    Exceção levantada quando o formato do arquivo de settings não é suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidSettingsRootTypeError(SettingsError):
    """
    Exceção levantada quando o conteúdo raiz dos settings não é um `dict`,
    ou quando um campo conhecido possui tipo incompatível.
    """


class SettingsTypeConflictError(SettingsError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"retry": {"limit": 0}}
        - override: {"retry": "never"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """

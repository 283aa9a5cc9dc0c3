"""
Renderização de templates de arquivos.

Templates são renderizados com Jinja2 contra um único contexto formado
pela união de config e secrets (secrets vencem em colisão de chave, por
serem aplicados depois). Toda chave é exposta como variável de topo.

Referências no estilo `{{.NAME}}` (ponto inicial) são aceitas como
sinônimo de `{{ NAME }}`: o ponto inicial é removido antes da renderização.
Variáveis inexistentes são erro (StrictUndefined), nunca string vazia.

Apenas blocos `{{ ... }}` são sintaxe. Os delimitadores de bloco e de
comentário do Jinja2 são trocados por sequências com NUL, que não ocorrem
em texto, para que `{%`, `{#` e `${#VAR}` de scripts e configs passem
intactos.
"""

from __future__ import annotations

import re
from typing import Dict, Mapping

from jinja2 import Environment, StrictUndefined, TemplateError

from buckle.core.exceptions import TemplateRenderError

_DOT_REFERENCE = re.compile(r"\{\{(-?)(\s*)\.(?=[A-Za-z_])")

_environment = Environment(
    block_start_string="\x00{%",
    block_end_string="%}\x00",
    comment_start_string="\x00{#",
    comment_end_string="#}\x00",
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def build_context(config: Mapping[str, str], secrets: Mapping[str, str]) -> Dict[str, str]:
    context = dict(config)
    context.update(secrets)
    return context


def normalize_references(text: str) -> str:
    return _DOT_REFERENCE.sub(r"{{\1\2", text)


def render_template(text: str, context: Mapping[str, str], *, source: str = "<template>") -> str:
    """Renderiza `text`; erros de sintaxe ou de variável viram TemplateRenderError."""
    try:
        template = _environment.from_string(normalize_references(text))
        return template.render(dict(context))
    except TemplateError as e:
        raise TemplateRenderError(
            f"Could not render the template '{source}' due to a problem in your template.",
            details={"path": source, "template_error": f"{e.__class__.__name__}: {e}"},
            hint="Check that your template is valid and review the internal error message for more information.",
        ) from e

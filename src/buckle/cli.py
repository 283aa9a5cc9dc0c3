# src/buckle/cli.py
"""
Adapter de linha de comando do buckle.

    buckle [--log-level LEVEL] plan  --config DIR [--settings FILE]
    buckle [--log-level LEVEL] apply --config DIR [--settings FILE]

A CLI apenas traduz argumentos em chamadas ao core e eventos do
RunContext em linhas legíveis. Nenhuma decisão de resolução ou aplicação
é tomada aqui.

Variáveis de ambiente (usadas quando a opção correspondente é omitida):
    - BUCKLE_CONFIG     → diretório raiz da configuração
    - BUCKLE_SETTINGS   → arquivo de settings (YAML/JSON)
    - BUCKLE_LOG_LEVEL  → nível de logging (padrão: WARNING)

Códigos de saída:
    - 0 → sucesso
    - 1 → qualquer erro (mensagem e hint impressos em stderr)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Callable, Dict, List, Optional, TextIO

from buckle import __version__
from buckle.core.engine import APPLY, PLAN, Engine, RunContext, RunPlan, SourcePlan
from buckle.core.errors import BuckleErrorPayload, exception_to_error, invalid_invocation
from buckle.core.settings import SettingsError, load_settings
from buckle.core.values import SECRET_MASK
from buckle.logging_utils import configure_logging

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Renderização
# ---------------------------------------------------------------------------

def _value_lines(config: Dict[str, str], secret_keys: List[str], sources: List[SourcePlan], indent: str) -> List[str]:
    lines = [f"{indent}= config {k}={v}" for k, v in config.items()]
    lines += [f"{indent}= secret {k}={SECRET_MASK}" for k in secret_keys]
    lines += [f"{indent}~ source '{s.path}' ({s.interpreter})" for s in sources]
    return lines


def render_plan(plan: RunPlan) -> List[str]:
    """Converte um RunPlan nas linhas impressas por `buckle plan`."""
    lines = _value_lines(plan.config, plan.secret_keys, plan.pending_sources, " ")
    for package in plan.packages:
        lines.append(f" + package '{package.id}'")
        lines += _value_lines(package.config, package.secret_keys, package.pending_sources, "   ")
        lines += [f"   + {f.kind} '{f.destination}'" for f in package.files]
        lines += [f"   + task '{t.name}'" for t in package.tasks]
    return lines


def progress_printer(stream: TextIO) -> Callable[[Dict[str, Any]], None]:
    """Sink de eventos do apply: imprime pacotes, arquivos, tasks e retries."""

    def sink(event: Dict[str, Any]) -> None:
        name = event["event"]
        phase = event.get("phase")
        line: Optional[str] = None

        if name == "package.apply" and phase == "start":
            line = f" + package '{event['package_id']}'"
        elif name == "file.apply" and phase == "end":
            line = f"   + {event['kind']} '{event['destination']}'"
        elif name == "task.run" and phase == "end":
            line = f"   + task '{event['task']}'"
        elif name == "package.retry":
            line = f"   ! retrying package '{event['package_id']}' (attempt {event['attempt']}/{event['attempts']})"

        if line is not None:
            print(line, file=stream, flush=True)

    return sink


def print_error(payload: BuckleErrorPayload, stream: TextIO) -> None:
    print(f"error: {payload.message}", file=stream)
    for cause in ("os_error", "template_error"):
        if payload.details.get(cause):
            print(f"  caused by: {payload.details[cause]}", file=stream)
    for stream_name in ("stdout", "stderr"):
        captured = payload.details.get(stream_name)
        if captured:
            print(f"  {stream_name.upper()}:", file=stream)
            for line in str(captured).splitlines():
                print(f"    {line}", file=stream)
    if payload.hint:
        print(f"hint: {payload.hint}", file=stream)


# ---------------------------------------------------------------------------
# Comandos
# ---------------------------------------------------------------------------

def cmd_plan(args: argparse.Namespace, out: TextIO) -> int:
    settings = load_settings(args.settings)
    ctx = RunContext.create(mode=PLAN)
    engine = Engine.from_root(args.config, settings=settings, ctx=ctx)
    plan = engine.plan()

    for line in render_plan(plan):
        print(line, file=out)
    logger.info("Plan %s (%d packages)", plan.fingerprint[:12], len(plan.packages))
    return 0


def cmd_apply(args: argparse.Namespace, out: TextIO) -> int:
    settings = load_settings(args.settings)
    ctx = RunContext.create(mode=APPLY, sink=progress_printer(out))
    engine = Engine.from_root(args.config, settings=settings, ctx=ctx)
    result = engine.apply()

    logger.info("Applied %d packages: %s", len(result.packages), ", ".join(result.package_ids))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="buckle", description="Bootstrap a machine from a tree of packages.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "--log-level",
        default=os.environ.get("BUCKLE_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $BUCKLE_LOG_LEVEL or WARNING)",
    )

    sub = p.add_subparsers(dest="command", required=True)
    for name, func, help_text in (
        ("plan", cmd_plan, "Show what would be applied, without changing anything"),
        ("apply", cmd_apply, "Apply every package in dependency order"),
    ):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument(
            "--config",
            default=os.environ.get("BUCKLE_CONFIG"),
            help="Configuration root containing config/, secrets/ and packages/ (default: $BUCKLE_CONFIG)",
        )
        sp.add_argument(
            "--settings",
            default=os.environ.get("BUCKLE_SETTINGS"),
            help="Settings override file, YAML or JSON (default: $BUCKLE_SETTINGS)",
        )
        sp.set_defaults(func=func)

    return p


def main(argv: Optional[list[str]] = None, *, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    err = err or sys.stderr

    args = build_parser().parse_args(argv)

    try:
        configure_logging(args.log_level)
    except ValueError as e:
        print_error(invalid_invocation(message=str(e), hint="Use one of DEBUG, INFO, WARNING or ERROR."), err)
        return 1

    if not args.config:
        print_error(invalid_invocation(message="No configuration directory was provided."), err)
        return 1

    try:
        return args.func(args, out)
    except SettingsError as e:
        logger.debug("Settings error", exc_info=True)
        print_error(
            BuckleErrorPayload(
                type=e.__class__.__name__,
                message=str(e),
                details={"settings": args.settings},
                hint="Fix the settings file, or omit --settings to use the built-in defaults.",
            ),
            err,
        )
        return 1
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        print_error(exception_to_error(e), err)
        return 1

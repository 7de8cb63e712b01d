"""Output formatting utilities for CLI commands."""

from __future__ import annotations

import dataclasses
import json
import sys
from typing import Any, NoReturn

import rich_click as click
from rich.console import Console
from rich.pretty import Pretty

console = Console()


def to_jsonable(value: Any) -> Any:
    """Best-effort conversion of a state value for JSON output."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


def output_json(data: Any, indent: int = 2) -> None:
    """Output data as formatted JSON."""
    click.echo(json.dumps(to_jsonable(data), indent=indent, default=str))


def output_state(state: Any, json_flag: bool) -> None:
    """Print a final state, as JSON or pretty-printed."""
    if json_flag:
        output_json(state)
    else:
        console.print(Pretty(state, expand_all=True))


def output_mermaid(text: str, plain: bool) -> None:
    """Print Mermaid source, highlighted unless plain output was requested."""
    if plain:
        click.echo(text, nl=False)
    else:
        console.print(text.rstrip("\n"), markup=False, highlight=True, soft_wrap=True)


def error_exit(message: str, code: int = 1) -> NoReturn:
    """Print error message and exit with code."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

import typer
from rich import print
from rich.markup import escape

from friction.controller import SyncController
from friction.errors import FrictionError
from friction.status import Status

T = TypeVar("T")

_TONE_STYLES = {"success": "green", "error": "red", "info": "dim"}


def print_status(status: Status) -> None:
    if not status.message:
        return
    style = _TONE_STYLES.get(status.tone, "dim")
    print(f"[{style}]{escape(status.message)}[/{style}]")


def run_or_exit(controller: SyncController, action: Callable[[], T]) -> T:
    """Run a controller flow, turning user-facing failures into exit code 1."""

    try:
        return action()
    except FrictionError as exc:
        if str(exc) != controller.status.current.message:
            print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

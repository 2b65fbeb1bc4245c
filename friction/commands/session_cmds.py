from __future__ import annotations

from rich import print

from friction.controller import ConnectionStatus, SyncController

from .common import run_or_exit


def print_connection(status: ConnectionStatus) -> None:
    if status.connected:
        print(f"[green]{status.state}[/green]")
        return
    detail = f" ({status.detail})" if status.detail else ""
    print(f"[yellow]{status.state}{detail}[/yellow]")


def login_cmd(controller: SyncController, *, token: str) -> None:
    """Store the bearer token and verify it against the service."""

    status = run_or_exit(controller, lambda: controller.login(token))
    print_connection(status)


def logout_cmd(controller: SyncController) -> None:
    controller.logout()


def status_cmd(controller: SyncController) -> None:
    print_connection(controller.check_connection())


def theme_cmd(controller: SyncController) -> None:
    controller.toggle_theme()

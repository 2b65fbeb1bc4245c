from __future__ import annotations

import typer
from rich import print

from . import __version__
from .commands.capture_cmds import capture_cmd, open_reports_cmd, report_cmd
from .commands.common import print_status
from .commands.findings_cmds import findings_cmd, review_cmd
from .commands.session_cmds import login_cmd, logout_cmd, status_cmd, theme_cmd
from .config import load_config
from .controller import SyncController
from .logging_config import setup_logging

app = typer.Typer(help="friction: capture moments and review findings")


def _controller() -> SyncController:
    cfg = load_config()
    controller = SyncController.from_config(cfg)
    controller.status.subscribe(print_status)
    return controller


def _read_text(text: str | None) -> str:
    if text is None or text == "-":
        return typer.get_text_stream("stdin").read()
    return text


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    cfg = load_config()
    setup_logging("DEBUG" if verbose else cfg.log_level, cfg.log_file)


@app.command()
def version() -> None:
    """Print the installed version."""

    print(__version__)


@app.command()
def login(token: str = typer.Argument(..., help="Bearer token from the web app")) -> None:
    """Save the session token."""

    login_cmd(_controller(), token=token)


@app.command()
def logout() -> None:
    """Forget the session token."""

    logout_cmd(_controller())


@app.command()
def status() -> None:
    """Check whether the stored token is accepted."""

    status_cmd(_controller())


@app.command()
def theme() -> None:
    """Cycle the theme preference (system, light, dark)."""

    theme_cmd(_controller())


@app.command()
def capture(
    text: str = typer.Argument(None, help="Text to capture; '-' or omitted reads stdin"),
    highlight: bool = typer.Option(False, help="Capture as a page highlight"),
    url: str = typer.Option(None, help="Source page URL (highlights only)"),
) -> None:
    """Send a moment to the service."""

    capture_cmd(_controller(), text=_read_text(text), highlight=highlight, source_url=url)


@app.command()
def report(
    open_report: bool = typer.Option(True, "--open/--no-open", help="Open the reports page"),
) -> None:
    """Run a snapshot and open the reports page."""

    report_cmd(_controller(), open_report=open_report)


@app.command("open")
def open_reports() -> None:
    """Open the reports page without running a snapshot."""

    open_reports_cmd(_controller())


@app.command()
def findings(
    state: str = typer.Option(None, help="unreviewed, confirmed or deferred"),
    query: str = typer.Option("", "--query", "-q", help="Filter by topic, summary or recall"),
) -> None:
    """List findings from today and yesterday."""

    findings_cmd(_controller(), state=state, query=query)


def _review(finding_id: str, action: str, state: str | None) -> None:
    review_cmd(_controller(), finding_id=finding_id, action=action, state=state)


@app.command()
def confirm(
    finding_id: str,
    state: str = typer.Option(None, help="View the finding is listed in"),
) -> None:
    """Accept a finding."""

    _review(finding_id, "confirm", state)


@app.command()
def defer(
    finding_id: str,
    state: str = typer.Option(None, help="View the finding is listed in"),
) -> None:
    """Ignore a finding for now."""

    _review(finding_id, "defer", state)


@app.command()
def resolve(
    finding_id: str,
    state: str = typer.Option("confirmed", help="View the finding is listed in"),
) -> None:
    """Mark a confirmed finding as resolved."""

    _review(finding_id, "resolve", state)


if __name__ == "__main__":
    app()

from __future__ import annotations

from rich import print

from friction.controller import SyncController

from .common import run_or_exit


def capture_cmd(
    controller: SyncController,
    *,
    text: str,
    highlight: bool,
    source_url: str | None,
) -> None:
    """Send one moment; highlights carry the page they came from."""

    source_type = "highlight" if highlight else "bulk_paste"
    run_or_exit(
        controller,
        lambda: controller.capture(text, source_type=source_type, source_url=source_url),
    )


def report_cmd(controller: SyncController, *, open_report: bool) -> None:
    run_or_exit(controller, lambda: controller.generate_report(open_report=open_report))


def open_reports_cmd(controller: SyncController) -> None:
    url = controller.open_reports()
    print(url)

from __future__ import annotations

from rich import print
from rich.markup import escape

from friction.controller import SyncController
from friction.findings import Finding, FindingsView
from friction.review import available_actions
from friction.states import validate_view_state

from .common import run_or_exit


def _render_finding(item: Finding, actions: list[str]) -> None:
    meta = ", ".join(part for part in (item.type, item.confidence) if part)
    title = escape(item.topic or "Untitled")
    print(f"  [bold]{title}[/bold] [dim]{escape(item.id)} {escape(meta)}[/dim]")
    if item.summary:
        print(f"    {escape(item.summary)}")
    if item.recall_anchor:
        print(f"    [dim]Recall: {escape(item.recall_anchor)}[/dim]")
    print(f"    [cyan]actions: {', '.join(actions)}[/cyan]")


def render_view(view: FindingsView, state: str) -> None:
    if view.is_empty:
        print("No findings")
        return
    actions = sorted(available_actions(state))
    for group in view.groups:
        print(f"[bold]{group.label} · {len(group.items)}[/bold]")
        for item in group.items:
            _render_finding(item, actions)


def findings_cmd(controller: SyncController, *, state: str | None, query: str) -> None:
    """Fetch findings for one state and show the Today/Yesterday buckets."""

    def _load() -> FindingsView:
        controller.refresh_findings(state)
        return controller.search(query)

    view = run_or_exit(controller, _load)
    render_view(view, controller.state)


def review_cmd(
    controller: SyncController,
    *,
    finding_id: str,
    action: str,
    state: str | None,
) -> None:
    def _apply() -> FindingsView:
        if state is not None:
            controller.state = validate_view_state(state)
        return controller.review(finding_id, action)

    view = run_or_exit(controller, _apply)
    render_view(view, controller.state)

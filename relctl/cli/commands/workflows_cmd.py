from __future__ import annotations

from pathlib import Path

import typer

from relctl.cli.context import build_context
from relctl.routing.workflows import write_workflows


def workflows(
    out: Path = typer.Option(
        Path(".github/workflows"),
        "--out",
        help="Directory to write ci.yaml and release.yaml into.",
    ),
) -> None:
    """Render the CI and release workflows from the routing config."""
    ctx = build_context(require_config=False)
    target = out if out.is_absolute() else ctx.repo_root / out
    for path in write_workflows(ctx.config, target):
        ctx.console.success(f"wrote {path}")

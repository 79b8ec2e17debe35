"""Render the CI workflow files that encode the routing table.

``ci.yaml`` runs the check job for dispatch, pull requests and pushes to the
main branch. ``release.yaml`` runs both release jobs for dispatch and pushes
to the main branch only; pull requests never reach it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from relctl.core.config import Config

CHECKOUT_ACTION = "actions/checkout@v4"
SETUP_PYTHON_ACTION = "actions/setup-python@v5"
PRE_COMMIT_ACTION = "pre-commit/action@v3.0.1"
PYTHON_VERSION = "3.12"

CHECK_GROUP_EXPR = "${{ github.workflow }}-${{ github.head_ref || github.run_id }}"


class _IncreasedYamlIndent(yaml.Dumper):
    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)

    def write_line_break(self, data: str | None = None) -> None:
        super().write_line_break(data)
        # Blank line between top-level keys.
        if len(self.indents) == 1:
            super().write_line_break()


def _secret(name: str) -> str:
    return "${{ secrets.%s }}" % name


def _setup_steps() -> list[dict[str, Any]]:
    return [
        {"uses": CHECKOUT_ACTION, "with": {"fetch-depth": 0}},
        {"uses": SETUP_PYTHON_ACTION, "with": {"python-version": PYTHON_VERSION}},
    ]


def ci_workflow(config: Config) -> dict[str, Any]:
    routing = config.routing
    return {
        "name": routing.workflow,
        "on": {
            "workflow_dispatch": None,
            "pull_request": None,
            "push": {"branches": [config.repository.main_branch]},
        },
        "permissions": {"contents": "read"},
        "concurrency": {
            "group": CHECK_GROUP_EXPR,
            "cancel-in-progress": routing.check_cancel_in_progress,
        },
        "jobs": {
            "check": {
                "runs-on": "ubuntu-latest",
                "steps": [
                    {"uses": CHECKOUT_ACTION},
                    {"uses": SETUP_PYTHON_ACTION, "with": {"python-version": PYTHON_VERSION}},
                    {"uses": PRE_COMMIT_ACTION},
                ],
            },
        },
    }


def release_workflow(config: Config) -> dict[str, Any]:
    creds = config.credentials
    routing = config.routing
    repo_env = {creds.repo_token_env: _secret(creds.repo_token_env)}
    install = {"run": config.workflows.install}

    return {
        "name": "release",
        "on": {
            "workflow_dispatch": None,
            "push": {"branches": [config.repository.main_branch]},
        },
        "jobs": {
            "release": {
                "runs-on": "ubuntu-latest",
                "permissions": {"contents": "write"},
                "steps": [
                    *_setup_steps(),
                    install,
                    {
                        "run": "relctl release",
                        "env": {
                            **repo_env,
                            creds.registry_token_env: _secret(creds.registry_token_env),
                        },
                    },
                ],
            },
            "release-pr": {
                "runs-on": "ubuntu-latest",
                "permissions": {"contents": "write", "pull-requests": "write"},
                "concurrency": {
                    "group": f"{routing.release_pr_group_prefix}-${{{{ github.ref }}}}",
                    "cancel-in-progress": routing.release_pr_cancel_in_progress,
                },
                "steps": [
                    *_setup_steps(),
                    install,
                    {"run": "relctl release-pr", "env": repo_env},
                ],
            },
        },
    }


def render_workflows(config: Config) -> dict[str, dict[str, Any]]:
    return {
        "ci.yaml": ci_workflow(config),
        "release.yaml": release_workflow(config),
    }


def dump_yaml(definition: dict[str, Any]) -> str:
    return yaml.dump(
        definition,
        sort_keys=False,
        Dumper=_IncreasedYamlIndent,
        default_flow_style=False,
        width=120,
    )


def write_yaml(definition: dict[str, Any], output_path: Path) -> None:
    """Write a `dict` to disk with standardized YAML formatting."""
    with open(output_path, "w", encoding="utf-8") as stream:
        stream.write(dump_yaml(definition))


def write_workflows(config: Config, out_dir: Path) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for filename, definition in render_workflows(config).items():
        path = out_dir / filename
        write_yaml(definition, path)
        written.append(path)
    return written

from __future__ import annotations

from pathlib import Path

from relctl.core.config import RepositoryConfig, RoutingConfig
from relctl.routing.events import EventKind, TriggerEvent
from relctl.routing.outputs import decision_outputs, write_outputs
from relctl.routing.router import route


def _decision(kind: EventKind, ref: str, head_ref: str | None = None):
    event = TriggerEvent(kind=kind, ref=ref, run_id="42", workflow="ci", head_ref=head_ref)
    return route(event, repository=RepositoryConfig(), routing=RoutingConfig())


def test_push_to_main_outputs() -> None:
    outputs = decision_outputs(_decision(EventKind.PUSH, "refs/heads/main"))

    assert outputs == {
        "jobs": "check,release,release-pr",
        "run_check": "true",
        "run_release": "true",
        "run_release_pr": "true",
        "check_group": "ci-42",
        "check_cancel_in_progress": "true",
        "release_pr_group": "release-pr-refs/heads/main",
        "release_pr_cancel_in_progress": "false",
    }


def test_pull_request_outputs_disable_release_jobs() -> None:
    outputs = decision_outputs(
        _decision(EventKind.PULL_REQUEST, "refs/pull/1/merge", head_ref="topic")
    )
    assert outputs["jobs"] == "check"
    assert outputs["run_release"] == "false"
    assert outputs["run_release_pr"] == "false"
    assert outputs["check_group"] == "ci-topic"
    assert "release_pr_group" not in outputs


def test_write_outputs_appends(tmp_path: Path) -> None:
    path = tmp_path / "out" / "github_output"
    write_outputs(path, {"a": "1"})
    write_outputs(path, {"b": "2"})
    assert path.read_text(encoding="utf-8") == "a=1\nb=2\n"

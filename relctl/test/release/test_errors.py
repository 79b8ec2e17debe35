from __future__ import annotations

import pytest

from relctl.core.errors import ErrorCode
from relctl.platform.process import ProcessError
from relctl.release.errors import ReleaseError, exit_code_for, from_process_error, is_transient


def _perr(stderr: str, returncode: int = 1) -> ProcessError:
    return ProcessError(command=("git", "push"), returncode=returncode, stdout="", stderr=stderr)


@pytest.mark.parametrize(
    "stderr, kind",
    [
        ("fatal: unable to access: Could not resolve host: github.com", "transient"),
        ("HTTP 503: Service Unavailable", "transient"),
        ("! [rejected]        v1.2.0 -> v1.2.0 (already exists)", "conflict"),
        ("HTTP 422: Validation Failed (tag_name was used by an immutable release)", "conflict"),
        ("HTTP 401: Bad credentials", "auth_required"),
        ("error: pathspec 'x' did not match", "command_failed"),
    ],
)
def test_from_process_error_classifies(stderr: str, kind: str) -> None:
    error = from_process_error(_perr(stderr), message="git push failed")
    assert error.kind == kind
    assert error.message == "git push failed"
    assert error.hint == stderr


def test_timeout_is_transient() -> None:
    assert is_transient(_perr("Command timed out after 30s", returncode=-1))


@pytest.mark.parametrize(
    "kind, code",
    [
        ("transient", ErrorCode.TRANSIENT_ERROR),
        ("conflict", ErrorCode.CONFLICT_ERROR),
        ("fatal", ErrorCode.FATAL_ERROR),
        ("command_failed", ErrorCode.FATAL_ERROR),
        ("tool_missing", ErrorCode.ENV_ERROR),
        ("auth_required", ErrorCode.ENV_ERROR),
        ("invalid_input", ErrorCode.USER_ERROR),
    ],
)
def test_exit_code_for(kind: str, code: ErrorCode) -> None:
    assert exit_code_for(ReleaseError(kind=kind, message="x")) == code  # type: ignore[arg-type]


def test_pretty() -> None:
    assert ReleaseError(kind="fatal", message="bad").pretty() == "bad"
    assert ReleaseError(kind="fatal", message="bad", hint="fix it").pretty() == "bad (hint: fix it)"

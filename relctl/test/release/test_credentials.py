from __future__ import annotations

from relctl.core.config import CredentialsConfig
from relctl.core.result import Err, Ok
from relctl.release.credentials import (
    Credentials,
    load_credentials,
    require_registry_token,
    require_repo_token,
)

CONFIG = CredentialsConfig(repo_token_env="GITHUB_TOKEN", registry_token_env="CARGO_REGISTRY_TOKEN")


def test_load_from_configured_env_names() -> None:
    creds = load_credentials(
        {"GITHUB_TOKEN": "ghs_abc123", "CARGO_REGISTRY_TOKEN": "cio_xyz789"},
        CONFIG,
    )
    assert creds.repo_token == "ghs_abc123"
    assert creds.gh_env() == {"GH_TOKEN": "ghs_abc123"}
    assert creds.publish_env() == {"CARGO_REGISTRY_TOKEN": "cio_xyz789"}
    assert set(creds.secrets()) == {"ghs_abc123", "cio_xyz789"}


def test_repr_never_shows_tokens() -> None:
    creds = Credentials(registry_env="X", repo_token="ghs_abc123", registry_token="cio_xyz789")
    assert "ghs_abc123" not in repr(creds)
    assert "cio_xyz789" not in repr(creds)


def test_empty_values_are_missing() -> None:
    creds = load_credentials({"GITHUB_TOKEN": ""}, CONFIG)
    assert creds.repo_token is None
    assert creds.gh_env() == {}
    assert creds.secrets() == ()


def test_require_tokens() -> None:
    missing = load_credentials({}, CONFIG)
    repo = require_repo_token(missing, CONFIG)
    registry = require_registry_token(missing, CONFIG)

    assert isinstance(repo, Err) and repo.error.kind == "auth_required"
    assert isinstance(registry, Err)
    assert registry.error.hint is not None and "CARGO_REGISTRY_TOKEN" in registry.error.hint

    present = load_credentials({"GITHUB_TOKEN": "t0ken"}, CONFIG)
    assert isinstance(require_repo_token(present, CONFIG), Ok)

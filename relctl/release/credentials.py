"""Opaque release credentials.

Tokens are read from the environment, handed to child processes through
their environment, and registered with the masking console. They are never
placed on a command line, written to disk, or shown in a repr.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from relctl.core.config import CredentialsConfig
from relctl.core.result import Err, Ok, Result
from relctl.release.errors import ReleaseError


@dataclass(frozen=True, slots=True)
class Credentials:
    registry_env: str
    repo_token: str | None = field(default=None, repr=False)
    registry_token: str | None = field(default=None, repr=False)

    def secrets(self) -> tuple[str, ...]:
        return tuple(t for t in (self.repo_token, self.registry_token) if t)

    def gh_env(self) -> dict[str, str]:
        if self.repo_token is None:
            return {}
        return {"GH_TOKEN": self.repo_token}

    def publish_env(self) -> dict[str, str]:
        if self.registry_token is None:
            return {}
        return {self.registry_env: self.registry_token}


def load_credentials(environ: Mapping[str, str], config: CredentialsConfig) -> Credentials:
    return Credentials(
        registry_env=config.registry_token_env,
        repo_token=environ.get(config.repo_token_env) or None,
        registry_token=environ.get(config.registry_token_env) or None,
    )


def require_repo_token(creds: Credentials, config: CredentialsConfig) -> Result[None, ReleaseError]:
    if creds.repo_token is None:
        return Err(
            ReleaseError(
                kind="auth_required",
                message="repository token is not set",
                hint=f"Export {config.repo_token_env} with contents/pull-requests write access.",
            )
        )
    return Ok(None)


def require_registry_token(
    creds: Credentials, config: CredentialsConfig
) -> Result[None, ReleaseError]:
    if creds.registry_token is None:
        return Err(
            ReleaseError(
                kind="auth_required",
                message="registry token is not set",
                hint=f"Export {config.registry_token_env} to publish packages.",
            )
        )
    return Ok(None)

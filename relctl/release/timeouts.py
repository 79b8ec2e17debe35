from __future__ import annotations

# gh API calls (pr list/create/edit, release create)
GH_TIMEOUT_SECONDS = 60.0

# Local git operations (rev-parse, log, switch, add, commit)
GIT_TIMEOUT_SECONDS = 30.0

# Network-bound git operations (ls-remote, push)
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# Package publish commands (build + upload)
PUBLISH_TIMEOUT_SECONDS = 20 * 60.0

# Idempotent read retry policy
READ_RETRY_ATTEMPTS = 3
READ_RETRY_DELAY_SECONDS = 1.0

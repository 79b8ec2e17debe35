from __future__ import annotations

from ._gate import require_arch_checks_enabled
from ._utils import import_offenders, source_files


def test_subprocess_is_only_imported_by_process_module() -> None:
    require_arch_checks_enabled()

    offenders = import_offenders(
        source_files(),
        ("subprocess",),
        allow=frozenset({"platform/process.py"}),
    )

    assert not offenders, "git/gh/publish calls must go through run_process:\n" + "\n".join(
        offenders
    )

"""Running post-apply hooks under an allowlist and a timeout."""

from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass, field
from datetime import datetime

from evoloop.models import HookExecutionRecord, new_id

DEFAULT_HOOK_TIMEOUT_SEC = 30


@dataclass
class PostApplyHook:
    """A command to run after a patch has been applied."""

    command: str = ""
    args: list[str] = field(default_factory=list)
    timeout_sec: int = 0
    allowlist: list[str] = field(default_factory=list)


class HookNotAllowedError(PermissionError):
    """Raised when a hook command is not permitted by its allowlist."""


def validate_allowlist(command: str, allowlist: list[str]) -> None:
    """Raise HookNotAllowedError unless command is exactly one of allowlist."""
    if not allowlist:
        raise HookNotAllowedError("hook allowlist is empty: no commands are permitted")
    if command not in allowlist:
        raise HookNotAllowedError(f"command {command!r} is not in allowlist {allowlist}")


def _text(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


class HookExecutor:
    """Runs post-apply hooks with safety constraints."""

    def execute(self, hook: PostApplyHook, execution_id: str) -> HookExecutionRecord:
        """Run the hook and return its captured result.

        Raises HookNotAllowedError if the command is not allowed.
        """
        validate_allowlist(hook.command, hook.allowlist)

        timeout = hook.timeout_sec if hook.timeout_sec > 0 else DEFAULT_HOOK_TIMEOUT_SEC

        executed_at = datetime.now()
        started = time.monotonic()
        stdout = stderr = ""
        timed_out = False
        try:
            completed = subprocess.run(
                [hook.command, *hook.args],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            timed_out = True
            exit_code = -1
            stdout, stderr = _text(exc.stdout), _text(exc.stderr)
        except OSError:
            exit_code = -1
        else:
            stdout, stderr = _text(completed.stdout), _text(completed.stderr)
            # A process killed by a signal has no exit status of its own.
            exit_code = completed.returncode if completed.returncode >= 0 else -1
        duration_ms = int((time.monotonic() - started) * 1000)

        return HookExecutionRecord(
            hook_id=new_id(),
            execution_id=execution_id,
            hook_type="post_apply",
            command=hook.command,
            args=list(hook.args),
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration_ms=duration_ms,
            timed_out=timed_out,
            executed_at=executed_at,
        )
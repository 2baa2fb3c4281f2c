"""Running the opaque shell commands of a deployment.

Build, deploy, status and cleanup steps are configured as shell strings.
Vigil never interprets them: it runs each one to completion in the target's
working copy and only looks at the exit code, keeping the output for logs.
"""

import os
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

# Output kept per stream before truncation (100KB)
MAX_OUTPUT_BYTES: int = 102400

DEFAULT_SHELL: str = "/bin/sh"

_TRUNCATION_MARKER = "\n... [output truncated]"


@dataclass(frozen=True, slots=True)
class ScriptConfig:
    """A command to run.

    Attributes:
        command: Command string.
        shell: Interpreter invoked as `shell -c command`. With None the
            command is split with shlex and executed directly.
        cwd: Working directory, the current one if None.
        env: Variables added to the inherited environment.
        timeout_ms: Kill the command after this long. None waits forever.
    """

    command: str | None = None
    shell: str | None = DEFAULT_SHELL
    cwd: str | Path | None = None
    env: dict[str, str] = field(default_factory=dict)
    timeout_ms: int | None = None


@dataclass(frozen=True, slots=True)
class ScriptResult:
    """What happened when a command ran.

    `exit_code` is None when the command never produced one: it could not be
    started, or it was killed on timeout. `error` explains those cases.
    """

    success: bool
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    timed_out: bool = False
    command_not_found: bool = False

    @classmethod
    def not_run(cls, error: str, *, timed_out: bool = False, not_found: bool = False) -> "ScriptResult":
        """Result for a command that did not exit on its own."""
        return cls(success=False, error=error, timed_out=timed_out, command_not_found=not_found)

    def describe(self) -> str:
        """Summarise a failure in one line for logs and CLI output."""
        if self.error is not None:
            return self.error
        lines = (self.stderr or self.stdout).strip().splitlines()
        summary = f"exited with code {self.exit_code}"
        return f"{summary}: {lines[-1]}" if lines else summary


def truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Cap `output` at `max_bytes` of UTF-8, marking the cut.

    A multi-byte character straddling the limit is dropped whole.
    """
    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output
    return encoded[:max_bytes].decode("utf-8", errors="ignore") + _TRUNCATION_MARKER


def build_command(config: ScriptConfig) -> list[str]:
    """Return the argv for `config`, or an empty list when there is no command."""
    match config:
        case ScriptConfig(command=None | ""):
            return []
        case ScriptConfig(command=str() as command, shell=None | ""):
            return shlex.split(command)
        case ScriptConfig(command=str() as command, shell=str() as shell):
            return [shell, "-c", command]
    return []


def run_script(config: ScriptConfig) -> ScriptResult:
    """Run a command and wait for it.

    A non-zero exit is reported through the result, never raised. Stdin is
    closed so a command that prompts fails instead of hanging a deploy run.
    """
    argv = build_command(config)
    if not argv:
        return ScriptResult.not_run("No command specified")

    timeout = config.timeout_ms / 1000 if config.timeout_ms else None
    try:
        completed = subprocess.run(  # noqa: S603
            argv,
            cwd=config.cwd or None,
            env=os.environ | config.env,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return ScriptResult.not_run(f"Command timed out after {timeout}s", timed_out=True)
    except FileNotFoundError as e:
        return ScriptResult.not_run(str(e), not_found=True)
    except OSError as e:
        return ScriptResult.not_run(str(e))

    return ScriptResult(
        success=completed.returncode == 0,
        exit_code=completed.returncode,
        stdout=completed.stdout.decode("utf-8", errors="replace"),
        stderr=completed.stderr.decode("utf-8", errors="replace"),
    )

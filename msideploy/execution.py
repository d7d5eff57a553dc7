"""Synchronous process execution with explicit exit-status classification."""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

_logging = logging.getLogger(__name__)

ERROR_SUCCESS = 0
ERROR_INSTALL_ALREADY_RUNNING = 1618
ERROR_SUCCESS_REBOOT_INITIATED = 1641
ERROR_SUCCESS_REBOOT_REQUIRED = 3010

_REBOOT_CODES = (ERROR_SUCCESS_REBOOT_REQUIRED, ERROR_SUCCESS_REBOOT_INITIATED)


class ExitStatus(Enum):
    SUCCESS = "success"
    REBOOT_REQUIRED = "reboot-required"
    BUSY = "busy"
    FAILED = "failed"
    NOT_LAUNCHED = "not-launched"
    TIMEOUT = "timeout"

    @property
    def ok(self) -> bool:
        return self in (ExitStatus.SUCCESS, ExitStatus.REBOOT_REQUIRED)


def classify_exit_code(returncode: int) -> ExitStatus:
    """Map an installer exit code to an ExitStatus.

    Windows Installer conventions apply: 3010 and 1641 are successful installs
    that want a reboot, 1618 means another installation holds the installer
    mutex.
    """
    if returncode == ERROR_SUCCESS:
        return ExitStatus.SUCCESS
    if returncode in _REBOOT_CODES:
        return ExitStatus.REBOOT_REQUIRED
    if returncode == ERROR_INSTALL_ALREADY_RUNNING:
        return ExitStatus.BUSY
    return ExitStatus.FAILED


@dataclass
class ProcessResult:
    argv: list[str]
    status: ExitStatus
    returncode: int | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status.ok


def run_process(
    argv: list[str], cwd: Path | str | None = None, timeout: int | None = None
) -> ProcessResult:
    """Launch ``argv`` without a shell and wait for it to exit.

    Launch failures and timeouts are logged and returned, never raised.
    """
    if not argv:
        raise ValueError("argv must not be empty")

    _logging.debug(f"Running: {subprocess.list2cmdline(argv)}")
    try:
        completed = subprocess.run(argv, cwd=cwd, timeout=timeout, check=False)
    except subprocess.TimeoutExpired:
        _logging.warning(f"Timed out after {timeout} seconds: {argv[0]}")
        return ProcessResult(
            argv, ExitStatus.TIMEOUT, error=f"timed out after {timeout} seconds"
        )
    except OSError as e:
        _logging.warning(f"Failed to launch {argv[0]}: {type(e).__name__}: {e}")
        return ProcessResult(argv, ExitStatus.NOT_LAUNCHED, error=str(e))

    status = classify_exit_code(completed.returncode)
    if not status.ok:
        _logging.warning(f"{argv[0]} exited with {completed.returncode} ({status.value})")
    else:
        _logging.debug(f"{argv[0]} exited with {completed.returncode}")
    return ProcessResult(argv, status, returncode=completed.returncode)


def split_command_line(text: str) -> list[str]:
    """Split a Windows-style command line into arguments.

    Follows the rules the Microsoft C runtime uses to build ``argv``:

    - whitespace separates arguments except inside double quotes, and the
      quotes themselves are dropped, so ``/v"/qn REBOOT=R"`` yields
      ``['/v/qn REBOOT=R']``
    - ``2n`` backslashes followed by ``"`` become ``n`` backslashes and the
      quote opens or closes a quoted region
    - ``2n+1`` backslashes followed by ``"`` become ``n`` backslashes and a
      literal ``"``
    - backslashes not followed by ``"`` are kept as they are, so
      ``/log "C:\\Program Files\\x.log"`` yields
      ``['/log', 'C:\\Program Files\\x.log']``

    Raises:
        ValueError: If a quoted region is never closed
    """
    args: list[str] = []
    current: list[str] = []
    in_quotes = False
    has_token = False
    i = 0

    while i < len(text):
        char = text[i]
        if char == "\\":
            run_end = i
            while run_end < len(text) and text[run_end] == "\\":
                run_end += 1
            count = run_end - i
            if run_end < len(text) and text[run_end] == '"':
                current.append("\\" * (count // 2))
                if count % 2:
                    current.append('"')
                    run_end += 1
            else:
                current.append("\\" * count)
            has_token = True
            i = run_end
            continue

        if char == '"':
            in_quotes = not in_quotes
            has_token = True
        elif char.isspace() and not in_quotes:
            if has_token:
                args.append("".join(current))
                current = []
                has_token = False
        else:
            current.append(char)
            has_token = True
        i += 1

    if in_quotes:
        raise ValueError(f"Unbalanced quotes in command line: {text!r}")
    if has_token:
        args.append("".join(current))
    return args


__all__ = [
    "ExitStatus",
    "ProcessResult",
    "classify_exit_code",
    "run_process",
    "split_command_line",
]

"""Command execution utilities.

This module wraps external command execution (kubectl) with timing and
debug logging so every cluster read shows up in the logs.
"""

import subprocess
import time
from typing import Dict, List, Optional

import structlog

logger = structlog.get_logger(__name__)


def run_command(
    cmd: List[str],
    capture_output: bool = True,
    text: bool = True,
    check: bool = True,
    timeout: Optional[float] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    **kwargs
) -> subprocess.CompletedProcess:
    """Run an external command and log its outcome.

    This is a wrapper around subprocess.run that logs the command, its exit
    code and duration at debug level.

    Args:
        cmd: Command and arguments as list
        capture_output: Whether to capture stdout/stderr
        text: Whether to return output as text (vs bytes)
        check: Whether to raise exception on non-zero exit
        timeout: Command timeout in seconds
        cwd: Working directory for command
        env: Environment variables
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess instance with command results

    Raises:
        subprocess.CalledProcessError: If command fails and check=True
        subprocess.TimeoutExpired: If command times out
    """
    cmd_str = " ".join(cmd)
    logger.debug("command_start", command=cmd_str, cwd=cwd)

    start_time = time.time()
    result = subprocess.run(
        cmd,
        capture_output=capture_output,
        text=text,
        check=False,  # We'll handle check ourselves
        timeout=timeout,
        cwd=cwd,
        env=env,
        **kwargs
    )
    duration = time.time() - start_time

    logger.debug(
        "command_end",
        command=cmd_str,
        exit_code=result.returncode,
        duration_seconds=round(duration, 3),
    )

    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode,
            cmd,
            output=result.stdout,
            stderr=result.stderr
        )

    return result

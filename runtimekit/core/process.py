"""
Cancellable process runner.

run_command() starts a child with an explicit working directory and
environment, captures its output, and kills it if the operation context is
cancelled or reaches its deadline.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from runtimekit.core.context import OperationContext, ensure_context
from runtimekit.core.environment import env_to_dict
from runtimekit.core.exceptions import CommandError, OperationCancelled

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.2


def run_command(
    executable: Union[str, Path],
    args: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[List[str]] = None,
    context: Optional[OperationContext] = None,
) -> subprocess.CompletedProcess:
    """
    Run executable with args and wait for it.

    Args:
        executable: Program to run
        args: Arguments (without the program itself)
        cwd: Working directory for the child
        env: KEY=VALUE entries forming the complete child environment
             (None inherits the parent environment)
        context: Optional operation context; cancellation kills the child

    Returns:
        CompletedProcess with captured stdout/stderr

    Raises:
        CommandError: If the child exits with a non-zero status
        OperationCancelled: If the context is cancelled while running
        OSError: If the child cannot be spawned
    """
    context = ensure_context(context)
    context.check()

    command = [str(executable), *args]
    logger.debug(f"Running {' '.join(command)} (cwd={cwd})")

    proc = subprocess.Popen(
        command,
        cwd=str(cwd) if cwd is not None else None,
        env=env_to_dict(env),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )

    while True:
        try:
            stdout, stderr = proc.communicate(timeout=POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            if context.cancelled:
                proc.kill()
                proc.communicate()
                raise OperationCancelled(f"Command {command[0]} cancelled")

    if stdout:
        logger.debug(stdout.rstrip())
    if stderr:
        logger.debug(stderr.rstrip())

    if proc.returncode != 0:
        raise CommandError(command, proc.returncode, stderr or "")

    return subprocess.CompletedProcess(command, proc.returncode, stdout, stderr)

"""Exec credential plugins: run an external command and decode its ExecCredential."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence

import structlog
from pydantic import ValidationError

from kube_client_config.errors import CredentialDecodeError, ExecFailure
from kube_client_config.models import ExecCredential

log = structlog.get_logger()

_STDERR_TAIL = 512


def resolve_command(command: str) -> str:
    """Return an absolute path for ``command``, searching ``PATH`` if needed.

    Raises:
        ExecFailure: If the command cannot be found.
    """
    if os.path.isabs(command):
        return command
    resolved = shutil.which(command)
    if resolved is None:
        msg = f"Exec plugin {command!r} not found on PATH."
        raise ExecFailure(msg)
    return resolved


def run_exec_plugin(
    command: str,
    args: Sequence[str] = (),
    env: Mapping[str, str] | None = None,
) -> ExecCredential:
    """Run an exec credential plugin and decode what it prints.

    The plugin's standard output is read to end-of-stream and the process is
    reaped before decoding starts.

    Args:
        command: Plugin executable, absolute or looked up on ``PATH``.
        args: Arguments passed to the plugin.
        env: Extra variables layered over the current process environment.

    Raises:
        ExecFailure: If the plugin cannot be started or exits non-zero.
        CredentialDecodeError: If the output is not a valid ExecCredential.
    """
    executable = resolve_command(command)
    process_env = {**os.environ, **env} if env else None
    try:
        completed = subprocess.run(
            [executable, *args],
            capture_output=True,
            env=process_env,
            check=False,
        )
    except OSError as e:
        msg = f"Could not start exec plugin {executable}: {e}"
        raise ExecFailure(msg) from e

    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace").strip()[-_STDERR_TAIL:]
        msg = f"Exec plugin {executable} exited with status {completed.returncode}: {stderr}"
        raise ExecFailure(msg)

    try:
        credential = ExecCredential.model_validate_json(completed.stdout)
    except ValidationError as e:
        msg = f"Exec plugin {executable} returned an invalid ExecCredential: {e}"
        raise CredentialDecodeError(msg) from e

    log.debug(
        "exec_credential_decoded",
        command=executable,
        api_version=credential.api_version,
        expires=credential.status.expiration_timestamp.isoformat(),
    )
    return credential


def fetch_exec_token(
    command: str,
    args: Sequence[str] = (),
    env: Mapping[str, str] | None = None,
) -> str:
    """Run an exec credential plugin and return ``status.token``.

    The expiration timestamp is decoded but not enforced.
    """
    return run_exec_plugin(command, args, env).status.token

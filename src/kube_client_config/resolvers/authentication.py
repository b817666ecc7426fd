"""Authentication scheme selection for a kubeconfig user entry.

Schemes are tried in the order of ``AUTHENTICATION_SCHEMES``; the first one
that produces a credential wins and later ones are never evaluated. A scheme
whose material is present but unusable is logged and skipped.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import serialization

from kube_client_config.config import Authentication, BasicAuth, BearerToken, ClientCertificate
from kube_client_config.errors import CertificateLoadError, ConfigResolutionError, RequiredFileMissing
from kube_client_config.models import AuthInfo
from kube_client_config.resolvers.exec_credential import fetch_exec_token
from kube_client_config.resolvers.trust_roots import decode_inline_data, read_pem_file

log = structlog.get_logger()


def load_client_certificate(certificate_pem: bytes, key_pem: bytes) -> ClientCertificate:
    """Parse a PEM certificate and unencrypted PEM private key.

    Raises:
        CertificateLoadError: If either half fails to parse.
    """
    try:
        x509.load_pem_x509_certificate(certificate_pem)
    except ValueError as e:
        msg = f"Invalid client certificate: {e}"
        raise CertificateLoadError(msg) from e
    try:
        serialization.load_pem_private_key(key_pem, password=None)
    except (ValueError, TypeError) as e:
        # TypeError covers password-protected keys.
        msg = f"Invalid client key: {e}"
        raise CertificateLoadError(msg) from e
    return ClientCertificate(certificate_pem=certificate_pem, key_pem=key_pem)


def read_token_file(path: str | Path) -> str:
    """Read a bearer token from disk.

    Raises:
        RequiredFileMissing: If the file is unreadable or empty.
    """
    try:
        token = Path(path).read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Could not read token file {path}: {e}"
        raise RequiredFileMissing(msg) from e
    if not token:
        msg = f"Token file {path} is empty."
        raise RequiredFileMissing(msg)
    return token


def _basic(auth_info: AuthInfo) -> Authentication | None:
    if auth_info.username is not None and auth_info.password is not None:
        return BasicAuth(username=auth_info.username, password=auth_info.password)
    return None


def _token(auth_info: AuthInfo) -> Authentication | None:
    if auth_info.token is not None:
        return BearerToken(token=auth_info.token)
    return None


def _token_file(auth_info: AuthInfo) -> Authentication | None:
    if auth_info.token_file is None:
        return None
    return BearerToken(token=read_token_file(auth_info.token_file))


def _client_certificate_files(auth_info: AuthInfo) -> Authentication | None:
    if auth_info.client_certificate is None or auth_info.client_key is None:
        return None
    return load_client_certificate(
        read_pem_file(auth_info.client_certificate),
        read_pem_file(auth_info.client_key),
    )


def _client_certificate_data(auth_info: AuthInfo) -> Authentication | None:
    if auth_info.client_certificate_data is None or auth_info.client_key_data is None:
        return None
    return load_client_certificate(
        decode_inline_data(auth_info.client_certificate_data, "client-certificate-data"),
        decode_inline_data(auth_info.client_key_data, "client-key-data"),
    )


def _exec(auth_info: AuthInfo) -> Authentication | None:
    if auth_info.exec is None:
        return None
    exec_config = auth_info.exec
    env = {var.name: var.value for var in exec_config.env}
    return BearerToken(token=fetch_exec_token(exec_config.command, exec_config.args, env or None))


# Highest priority first.
AUTHENTICATION_SCHEMES: tuple[tuple[str, Callable[[AuthInfo], Authentication | None]], ...] = (
    ("basic", _basic),
    ("token", _token),
    ("token_file", _token_file),
    ("client_certificate_files", _client_certificate_files),
    ("client_certificate_data", _client_certificate_data),
    ("exec", _exec),
)


def authenticate(auth_info: AuthInfo, user: str | None = None) -> Authentication | None:
    """Select the highest-priority authentication scheme the user entry satisfies.

    Args:
        auth_info: The user's credential material.
        user: Name of the user entry, used only for log context.

    Returns:
        The credential, or None when no scheme could be satisfied.
    """
    for name, scheme in AUTHENTICATION_SCHEMES:
        try:
            authentication = scheme(auth_info)
        except ConfigResolutionError as e:
            log.warning("authentication_scheme_failed", scheme=name, user=user, error=str(e))
            continue
        if authentication is not None:
            log.debug("authentication_scheme_selected", scheme=name, user=user)
            return authentication
    return None

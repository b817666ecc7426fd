"""CA trust-root loading from a cluster's certificate-authority file or inline data."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable
from pathlib import Path

import structlog
from cryptography import x509

from kube_client_config.config import TrustRoots
from kube_client_config.errors import CertificateLoadError
from kube_client_config.models import Cluster

log = structlog.get_logger()


def decode_inline_data(encoded: str, source: str) -> bytes:
    """Decode a base64 kubeconfig ``*-data`` field.

    Raises:
        CertificateLoadError: If the text is not valid base64.
    """
    try:
        return base64.b64decode("".join(encoded.split()), validate=True)
    except binascii.Error as e:
        msg = f"Could not decode {source} as base64: {e}"
        raise CertificateLoadError(msg) from e


def parse_pem_certificates(data: bytes, source: str) -> TrustRoots:
    """Parse one or more PEM certificates.

    Raises:
        CertificateLoadError: If the bytes hold no parseable certificate.
    """
    try:
        certificates = x509.load_pem_x509_certificates(data)
    except ValueError as e:
        msg = f"Could not parse PEM certificates from {source}: {e}"
        raise CertificateLoadError(msg) from e
    return TrustRoots(certificates=tuple(certificates))


def read_pem_file(path: str | Path) -> bytes:
    """Read PEM material from disk, raising CertificateLoadError on I/O failure."""
    try:
        return Path(path).read_bytes()
    except OSError as e:
        msg = f"Could not read {path}: {e.strerror or e}"
        raise CertificateLoadError(msg) from e


def _from_ca_file(cluster: Cluster) -> TrustRoots | None:
    if cluster.certificate_authority is None:
        return None
    path = cluster.certificate_authority
    return parse_pem_certificates(read_pem_file(path), source=path)


def _from_ca_data(cluster: Cluster) -> TrustRoots | None:
    if cluster.certificate_authority_data is None:
        return None
    source = "certificate-authority-data"
    return parse_pem_certificates(decode_inline_data(cluster.certificate_authority_data, source), source=source)


# Checked in order. A source that is set but fails ends the search.
TRUST_ROOT_SOURCES: tuple[Callable[[Cluster], TrustRoots | None], ...] = (
    _from_ca_file,
    _from_ca_data,
)


def load_trust_roots(cluster: Cluster) -> TrustRoots | None:
    """Return the cluster's CA certificates, or None when unset or unloadable."""
    try:
        for source in TRUST_ROOT_SOURCES:
            roots = source(cluster)
            if roots is not None:
                return roots
    except CertificateLoadError as e:
        log.warning("trust_roots_unavailable", server=cluster.server, error=str(e))
    return None

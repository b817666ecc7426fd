"""Resolved client configuration, resolver settings, and kubeconfig loading."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

import yaml
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from pydantic import ValidationError

from kube_client_config.models import KubeConfig

DEFAULT_NAMESPACE = "default"
DEFAULT_SERVICE_ACCOUNT_ROOT = "/var/run/secrets/kubernetes.io/serviceaccount"


# --- Authentication variants ---


@dataclass(frozen=True)
class BasicAuth:
    scheme: ClassVar[str] = "basic"

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class BearerToken:
    scheme: ClassVar[str] = "bearer"

    token: str = field(repr=False)


@dataclass(frozen=True)
class ClientCertificate:
    """PEM-encoded client certificate and private key, both already parsed once."""

    scheme: ClassVar[str] = "x509"

    certificate_pem: bytes
    key_pem: bytes = field(repr=False)

    @property
    def certificate(self) -> x509.Certificate:
        return x509.load_pem_x509_certificate(self.certificate_pem)


Authentication = BasicAuth | BearerToken | ClientCertificate


# --- Transport settings ---


@dataclass(frozen=True)
class TrustRoots:
    """A non-empty set of CA certificates used to verify the server."""

    certificates: tuple[x509.Certificate, ...]

    def __post_init__(self) -> None:
        if not self.certificates:
            msg = "TrustRoots requires at least one certificate."
            raise ValueError(msg)

    def __len__(self) -> int:
        return len(self.certificates)

    def to_pem(self) -> bytes:
        """Re-encode the certificates as a single PEM bundle."""
        return b"".join(cert.public_bytes(serialization.Encoding.PEM) for cert in self.certificates)


@dataclass(frozen=True)
class Timeout:
    """Transport timeouts in seconds. None means no limit."""

    connect: float | None = 10.0
    read: float | None = None


@dataclass(frozen=True)
class RedirectPolicy:
    follow: bool = True
    max_redirects: int = 5
    allow_cycles: bool = False


@dataclass(frozen=True)
class ClientConfig:
    """Everything the transport layer needs to talk to one API server.

    Trust roots and ``insecure_skip_verify`` are stored side by side; the
    transport decides how to reconcile them.
    """

    server_url: str
    namespace: str
    authentication: Authentication
    trust_roots: TrustRoots | None
    insecure_skip_verify: bool
    timeout: Timeout = field(default_factory=Timeout)
    redirect_policy: RedirectPolicy = field(default_factory=RedirectPolicy)
    proxy_url: str | None = None
    use_compression: bool = False

    def describe(self) -> dict[str, Any]:
        """Return a JSON-safe summary with all secret material left out."""
        auth: dict[str, Any] = {"scheme": self.authentication.scheme}
        if isinstance(self.authentication, BasicAuth):
            auth["username"] = self.authentication.username
        elif isinstance(self.authentication, ClientCertificate):
            auth["subject"] = self.authentication.certificate.subject.rfc4514_string()
        return {
            "server_url": self.server_url,
            "namespace": self.namespace,
            "authentication": auth,
            "trust_roots": len(self.trust_roots) if self.trust_roots else 0,
            "insecure_skip_verify": self.insecure_skip_verify,
            "proxy_url": self.proxy_url,
            "use_compression": self.use_compression,
            "timeout": {"connect": self.timeout.connect, "read": self.timeout.read},
            "redirect_policy": {
                "follow": self.redirect_policy.follow,
                "max_redirects": self.redirect_policy.max_redirects,
                "allow_cycles": self.redirect_policy.allow_cycles,
            },
        }


# --- Settings ---


def default_kubeconfig_path() -> Path:
    """Return the first path listed in ``KUBECONFIG``, or ``~/.kube/config``."""
    paths = [p for p in os.environ.get("KUBECONFIG", "").split(os.pathsep) if p]
    if paths:
        return Path(paths[0]).expanduser()
    return Path.home() / ".kube" / "config"


@dataclass(frozen=True)
class ResolverSettings:
    """Resolver locations with environment variable overrides."""

    service_account_root: Path = field(
        default_factory=lambda: Path(
            os.environ.get("KUBE_CLIENT_SERVICE_ACCOUNT_ROOT", DEFAULT_SERVICE_ACCOUNT_ROOT)
        )
    )
    kubeconfig_path: Path = field(default_factory=default_kubeconfig_path)


def get_settings() -> ResolverSettings:
    """Return resolver settings with environment variable overrides applied."""
    return ResolverSettings()


# --- Document loading ---


def load_kubeconfig_from_string(text: str, source: str = "<string>") -> KubeConfig:
    """Parse kubeconfig YAML text into a KubeConfig document.

    Raises:
        ValueError: If the text is not a YAML mapping or fails validation.
    """
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        msg = f"Kubeconfig {source} is not valid YAML: {e}"
        raise ValueError(msg) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        msg = f"Kubeconfig {source} must be a mapping, got {type(raw).__name__}."
        raise ValueError(msg)

    try:
        return KubeConfig.model_validate(raw)
    except ValidationError as e:
        msg = f"Kubeconfig {source} is malformed: {e}"
        raise ValueError(msg) from e


def load_kubeconfig(path: Path | str | None = None) -> KubeConfig:
    """Load a kubeconfig document from disk.

    Args:
        path: File to read. Defaults to :func:`default_kubeconfig_path`.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file content is malformed.
    """
    path = Path(path) if path is not None else default_kubeconfig_path()
    if not path.exists():
        msg = f"Kubeconfig file not found: {path}. Set KUBECONFIG or pass an explicit path."
        raise FileNotFoundError(msg)
    return load_kubeconfig_from_string(path.read_text(encoding="utf-8"), source=str(path))

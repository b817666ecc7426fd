"""Build a ClientConfig from the in-cluster service account."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import structlog

from kube_client_config.config import (
    DEFAULT_NAMESPACE,
    BearerToken,
    ClientConfig,
    RedirectPolicy,
    ResolverSettings,
    Timeout,
    TrustRoots,
    get_settings,
)
from kube_client_config.errors import (
    CertificateLoadError,
    ConfigResolutionError,
    EnvironmentVariableMissing,
    RequiredFileMissing,
)
from kube_client_config.resolvers.kubeconfig import validate_url
from kube_client_config.resolvers.trust_roots import parse_pem_certificates

log = structlog.get_logger()

SERVICE_HOST_ENV = "KUBERNETES_SERVICE_HOST"
SERVICE_PORT_ENV = "KUBERNETES_SERVICE_PORT"

NAMESPACE_FILE = "namespace"
TOKEN_FILE = "token"
CA_CERT_FILE = "ca.crt"


@dataclass(frozen=True)
class ServiceAccountEnvironment:
    """Access to the environment variables and mounted files of a pod."""

    environ: Mapping[str, str]
    root: Path

    @classmethod
    def from_process(cls, settings: ResolverSettings | None = None) -> ServiceAccountEnvironment:
        settings = settings or get_settings()
        return cls(environ=os.environ, root=settings.service_account_root)

    def getenv(self, name: str) -> str | None:
        return self.environ.get(name)

    def path(self, name: str) -> Path:
        return self.root / name

    def read_bytes(self, name: str) -> bytes:
        return self.path(name).read_bytes()

    def read_text(self, name: str) -> str:
        return self.path(name).read_text(encoding="utf-8")


def build_server_url(host: str, port: str) -> str:
    """Join the service host and port into an https URL, bracketing IPv6 literals."""
    if ":" in host:
        return f"https://[{host}]:{port}"
    return f"https://{host}:{port}"


def _read_namespace(environment: ServiceAccountEnvironment) -> str | None:
    try:
        namespace = environment.read_text(NAMESPACE_FILE).strip()
    except (OSError, UnicodeDecodeError):
        log.debug("service_account_namespace_missing", path=str(environment.path(NAMESPACE_FILE)))
        return None
    return namespace or None


def _read_token(environment: ServiceAccountEnvironment) -> str:
    path = environment.path(TOKEN_FILE)
    try:
        token = environment.read_text(TOKEN_FILE).strip()
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Could not read service account token at {path}: {e}"
        raise RequiredFileMissing(msg) from e
    if not token:
        msg = f"Service account token at {path} is empty."
        raise RequiredFileMissing(msg)
    return token


def _read_trust_roots(environment: ServiceAccountEnvironment) -> TrustRoots | None:
    path = environment.path(CA_CERT_FILE)
    try:
        return parse_pem_certificates(environment.read_bytes(CA_CERT_FILE), source=str(path))
    except (OSError, CertificateLoadError) as e:
        log.warning("service_account_ca_unavailable", path=str(path), error=str(e))
        return None


def _build(
    environment: ServiceAccountEnvironment,
    timeout: Timeout,
    redirect: RedirectPolicy,
) -> ClientConfig:
    host = environment.getenv(SERVICE_HOST_ENV)
    port = environment.getenv(SERVICE_PORT_ENV)
    if host is None or port is None:
        missing = [name for name, value in ((SERVICE_HOST_ENV, host), (SERVICE_PORT_ENV, port)) if value is None]
        msg = f"Not running in a cluster: {', '.join(missing)} not set."
        raise EnvironmentVariableMissing(msg)

    server_url = validate_url(build_server_url(host, port))
    namespace = _read_namespace(environment)
    token = _read_token(environment)
    trust_roots = _read_trust_roots(environment)

    return ClientConfig(
        server_url=server_url,
        namespace=namespace or DEFAULT_NAMESPACE,
        authentication=BearerToken(token=token),
        trust_roots=trust_roots,
        insecure_skip_verify=trust_roots is None,
        timeout=timeout,
        redirect_policy=redirect,
        proxy_url=None,
    )


def from_service_account(
    timeout: Timeout | None = None,
    redirect: RedirectPolicy | None = None,
    environment: ServiceAccountEnvironment | None = None,
) -> ClientConfig | None:
    """Resolve the pod's service account into a ClientConfig.

    Returns None outside a cluster (service host or port unset), when the
    server URL is invalid, or when the token cannot be read. A missing CA
    certificate only disables TLS verification.
    """
    environment = environment or ServiceAccountEnvironment.from_process()
    try:
        return _build(environment, timeout or Timeout(), redirect or RedirectPolicy())
    except EnvironmentVariableMissing as e:
        log.debug("service_account_skipped", reason=str(e))
        return None
    except ConfigResolutionError as e:
        log.warning("service_account_resolution_failed", reason=type(e).__name__, error=str(e))
        return None

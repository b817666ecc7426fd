"""Hand a resolved ClientConfig to the kubernetes Python client."""

from __future__ import annotations

import atexit
import hashlib
import os
import tempfile

import structlog
import urllib3
from kubernetes import client as k8s_client

from kube_client_config.config import BasicAuth, BearerToken, ClientCertificate, ClientConfig

log = structlog.get_logger()

# One file per distinct piece of material, keyed by content digest and suffix.
_temp_files: dict[str, str] = {}


@atexit.register
def remove_temp_files() -> None:
    """Delete every key, certificate, and CA file written for the kubernetes client."""
    for path in _temp_files.values():
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
    _temp_files.clear()


def _write_temp_file(content: bytes, suffix: str) -> str:
    # The kubernetes client only accepts key and certificate material as file paths.
    key = hashlib.sha256(content).hexdigest() + suffix
    existing = _temp_files.get(key)
    if existing is not None and os.path.exists(existing):
        return existing
    fd, path = tempfile.mkstemp(prefix="kube-client-config-", suffix=suffix)
    with os.fdopen(fd, "wb") as f:
        f.write(content)
    _temp_files[key] = path
    return path


def to_kubernetes_configuration(config: ClientConfig) -> k8s_client.Configuration:
    """Translate a ClientConfig into a standalone kubernetes ``Configuration``.

    Timeout and redirect settings have no equivalent there and are not carried.
    """
    configuration = k8s_client.Configuration()
    configuration.host = config.server_url.rstrip("/")
    configuration.verify_ssl = not config.insecure_skip_verify
    if config.proxy_url:
        configuration.proxy = config.proxy_url
    if config.trust_roots is not None:
        configuration.ssl_ca_cert = _write_temp_file(config.trust_roots.to_pem(), ".crt")

    auth = config.authentication
    if isinstance(auth, BearerToken):
        configuration.api_key = {"authorization": f"Bearer {auth.token}"}
    elif isinstance(auth, BasicAuth):
        header = urllib3.util.make_headers(basic_auth=f"{auth.username}:{auth.password}")
        configuration.api_key = {"authorization": header["authorization"]}
    elif isinstance(auth, ClientCertificate):
        configuration.cert_file = _write_temp_file(auth.certificate_pem, ".crt")
        configuration.key_file = _write_temp_file(auth.key_pem, ".key")

    return configuration


def load_k8s_api_client(config: ClientConfig) -> k8s_client.ApiClient:
    """Create an isolated Kubernetes API client for a resolved configuration.

    The global kubernetes SDK configuration is left untouched.
    """
    log.debug("k8s_api_client_created", server=config.server_url, scheme=config.authentication.scheme)
    return k8s_client.ApiClient(configuration=to_kubernetes_configuration(config))

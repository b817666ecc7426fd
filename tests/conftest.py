"""Shared test fixtures: generated certificates, kubeconfig builders, and log isolation."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import structlog
import yaml
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from kube_client_config.models import KubeConfig


def make_certificate(common_name: str) -> tuple[bytes, bytes]:
    """Return a self-signed (certificate PEM, private key PEM) pair."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(tz=UTC)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return cert.public_bytes(serialization.Encoding.PEM), key_pem


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


@pytest.fixture(scope="session")
def ca_pair() -> tuple[bytes, bytes]:
    return make_certificate("test-ca")


@pytest.fixture(scope="session")
def ca_pem(ca_pair: tuple[bytes, bytes]) -> bytes:
    return ca_pair[0]


@pytest.fixture(scope="session")
def ca_bundle_pem(ca_pem: bytes) -> bytes:
    """Two distinct CA certificates concatenated."""
    return ca_pem + make_certificate("second-ca")[0]


@pytest.fixture(scope="session")
def client_pair() -> tuple[bytes, bytes]:
    return make_certificate("system:admin")


@pytest.fixture
def client_files(tmp_path: Path, client_pair: tuple[bytes, bytes]) -> tuple[Path, Path]:
    cert_path = tmp_path / "client.crt"
    key_path = tmp_path / "client.key"
    cert_path.write_bytes(client_pair[0])
    key_path.write_bytes(client_pair[1])
    return cert_path, key_path


@pytest.fixture
def make_kubeconfig() -> Callable[..., KubeConfig]:
    """Build a single-context kubeconfig document from wire-format fragments."""

    def build(
        user: dict[str, Any] | None = None,
        cluster: dict[str, Any] | None = None,
        context: dict[str, Any] | None = None,
        current_context: str | None = "dev",
    ) -> KubeConfig:
        raw = {
            "apiVersion": "v1",
            "kind": "Config",
            "current-context": current_context,
            "clusters": [{"name": "dev-cluster", "cluster": {"server": "https://dev.example.com:6443", **(cluster or {})}}],
            "contexts": [{"name": "dev", "context": {"cluster": "dev-cluster", "user": "dev-user", **(context or {})}}],
            "users": [{"name": "dev-user", "user": user if user is not None else {"token": "dev-token"}}],
        }
        return KubeConfig.model_validate(raw)

    return build


@pytest.fixture
def kubeconfig_file(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    def write(raw: dict[str, Any]) -> Path:
        path = tmp_path / "config"
        path.write_text(yaml.safe_dump(raw))
        return path

    return write

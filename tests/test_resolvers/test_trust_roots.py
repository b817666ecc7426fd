"""Tests for CA trust-root loading."""

from __future__ import annotations

import base64
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from kube_client_config.errors import CertificateLoadError
from kube_client_config.models import Cluster
from kube_client_config.resolvers.trust_roots import decode_inline_data, load_trust_roots, parse_pem_certificates


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


class TestParsePemCertificates:
    """Tests for parsing PEM certificate bundles."""

    def test_parses_bundle(self, ca_bundle_pem: bytes) -> None:
        roots = parse_pem_certificates(ca_bundle_pem, source="bundle")
        assert len(roots) == 2

    def test_garbage_raises(self) -> None:
        with pytest.raises(CertificateLoadError, match="bundle"):
            parse_pem_certificates(b"not a certificate", source="bundle")


class TestDecodeInlineData:
    """Tests for base64 decoding of inline kubeconfig data."""

    def test_decodes(self) -> None:
        assert decode_inline_data(_b64(b"PEM BYTES"), "certificate-authority-data") == b"PEM BYTES"

    def test_embedded_whitespace_is_ignored(self) -> None:
        encoded = _b64(b"PEM BYTES")
        assert decode_inline_data(f"{encoded[:4]}\n{encoded[4:]}\n", "certificate-authority-data") == b"PEM BYTES"

    def test_invalid_base64_raises(self) -> None:
        with pytest.raises(CertificateLoadError, match="certificate-authority-data"):
            decode_inline_data("!!!not-base64", "certificate-authority-data")


class TestLoadTrustRoots:
    """Tests for choosing between the CA file and inline CA data."""

    def test_no_ca_configured(self) -> None:
        assert load_trust_roots(Cluster(server="https://k8s")) is None

    def test_from_file(self, tmp_path: Path, ca_pem: bytes) -> None:
        ca_file = tmp_path / "ca.crt"
        ca_file.write_bytes(ca_pem)
        roots = load_trust_roots(Cluster(server="https://k8s", certificate_authority=str(ca_file)))
        assert roots is not None
        assert len(roots) == 1

    def test_from_inline_data(self, ca_bundle_pem: bytes) -> None:
        roots = load_trust_roots(Cluster(server="https://k8s", certificate_authority_data=_b64(ca_bundle_pem)))
        assert roots is not None
        assert len(roots) == 2

    def test_file_preferred_over_data(self, tmp_path: Path, ca_pem: bytes, ca_bundle_pem: bytes) -> None:
        ca_file = tmp_path / "ca.crt"
        ca_file.write_bytes(ca_pem)
        cluster = Cluster(
            server="https://k8s",
            certificate_authority=str(ca_file),
            certificate_authority_data=_b64(ca_bundle_pem),
        )
        roots = load_trust_roots(cluster)
        assert roots is not None
        assert len(roots) == 1

    def test_invalid_file_does_not_fall_back_to_data(self, tmp_path: Path, ca_bundle_pem: bytes) -> None:
        ca_file = tmp_path / "ca.crt"
        ca_file.write_text("garbage")
        cluster = Cluster(
            server="https://k8s",
            certificate_authority=str(ca_file),
            certificate_authority_data=_b64(ca_bundle_pem),
        )
        with capture_logs() as logs:
            assert load_trust_roots(cluster) is None
        assert logs[0]["event"] == "trust_roots_unavailable"
        assert logs[0]["log_level"] == "warning"

    def test_missing_file_does_not_fall_back_to_data(self, tmp_path: Path, ca_pem: bytes) -> None:
        cluster = Cluster(
            server="https://k8s",
            certificate_authority=str(tmp_path / "absent.crt"),
            certificate_authority_data=_b64(ca_pem),
        )
        assert load_trust_roots(cluster) is None

    def test_invalid_inline_data(self) -> None:
        with capture_logs() as logs:
            assert load_trust_roots(Cluster(server="https://k8s", certificate_authority_data=_b64(b"nope"))) is None
        assert [entry["event"] for entry in logs] == ["trust_roots_unavailable"]

    def test_non_base64_inline_data(self) -> None:
        with capture_logs() as logs:
            assert load_trust_roots(Cluster(server="https://k8s", certificate_authority_data="!!!not-base64")) is None
        assert logs[0]["event"] == "trust_roots_unavailable"
        assert "base64" in logs[0]["error"]

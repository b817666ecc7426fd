"""Resolve a Kubernetes client configuration from a kubeconfig document or a pod service account."""

from __future__ import annotations

from kube_client_config.config import (
    Authentication,
    BasicAuth,
    BearerToken,
    ClientCertificate,
    ClientConfig,
    RedirectPolicy,
    Timeout,
    TrustRoots,
    load_kubeconfig,
    load_kubeconfig_from_string,
)
from kube_client_config.models import KubeConfig
from kube_client_config.resolvers import from_kubeconfig, from_service_account, resolve_default

__all__ = [
    "Authentication",
    "BasicAuth",
    "BearerToken",
    "ClientCertificate",
    "ClientConfig",
    "KubeConfig",
    "RedirectPolicy",
    "Timeout",
    "TrustRoots",
    "from_kubeconfig",
    "from_service_account",
    "load_kubeconfig",
    "load_kubeconfig_from_string",
    "resolve_default",
]

"""Resolvers that turn a kubeconfig document or a pod service account into a ClientConfig."""

from __future__ import annotations

from pathlib import Path

import structlog

from kube_client_config.config import ClientConfig, RedirectPolicy, ResolverSettings, Timeout, get_settings, load_kubeconfig
from kube_client_config.resolvers.authentication import authenticate
from kube_client_config.resolvers.exec_credential import fetch_exec_token
from kube_client_config.resolvers.kubeconfig import context_selector, current_context_selector, from_kubeconfig, resolve
from kube_client_config.resolvers.service_account import ServiceAccountEnvironment, from_service_account
from kube_client_config.resolvers.trust_roots import load_trust_roots

__all__ = [
    "ServiceAccountEnvironment",
    "authenticate",
    "context_selector",
    "current_context_selector",
    "fetch_exec_token",
    "from_kubeconfig",
    "from_service_account",
    "load_trust_roots",
    "resolve",
    "resolve_default",
]

log = structlog.get_logger()


def _from_kubeconfig_file(path: Path, timeout: Timeout | None, redirect: RedirectPolicy | None) -> ClientConfig | None:
    try:
        document = load_kubeconfig(path)
    except FileNotFoundError:
        log.debug("kubeconfig_missing", path=str(path))
        return None
    except (OSError, ValueError) as e:
        log.warning("kubeconfig_unreadable", path=str(path), error=str(e))
        return None
    return from_kubeconfig(document, timeout=timeout, redirect=redirect)


def resolve_default(
    timeout: Timeout | None = None,
    redirect: RedirectPolicy | None = None,
    settings: ResolverSettings | None = None,
) -> ClientConfig | None:
    """Resolve from the default kubeconfig, falling back to the service account.

    The kubeconfig at ``settings.kubeconfig_path`` is tried first with its
    current context. If it is missing or yields nothing, the in-cluster
    service account is used.
    """
    settings = settings or get_settings()
    config = _from_kubeconfig_file(settings.kubeconfig_path, timeout, redirect)
    if config is not None:
        return config
    return from_service_account(
        timeout=timeout,
        redirect=redirect,
        environment=ServiceAccountEnvironment.from_process(settings),
    )

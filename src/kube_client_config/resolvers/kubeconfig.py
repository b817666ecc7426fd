"""Build a ClientConfig from a kubeconfig document and a context selector."""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import urlsplit

import structlog

from kube_client_config.config import DEFAULT_NAMESPACE, ClientConfig, RedirectPolicy, Timeout
from kube_client_config.errors import (
    ClusterNotFound,
    ConfigResolutionError,
    ContextNotFound,
    InvalidServerURL,
    NoAuthenticationAvailable,
    UserNotFound,
)
from kube_client_config.models import KubeConfig, NamedContext
from kube_client_config.resolvers.authentication import authenticate
from kube_client_config.resolvers.trust_roots import load_trust_roots

log = structlog.get_logger()

ContextSelector = Callable[[NamedContext, KubeConfig], bool]


def current_context_selector(named_context: NamedContext, document: KubeConfig) -> bool:
    """Match the context named by the document's ``current-context``."""
    return document.current_context is not None and named_context.name == document.current_context


def context_selector(name: str) -> ContextSelector:
    """Return a selector matching the context called ``name``."""

    def select(named_context: NamedContext, _document: KubeConfig) -> bool:
        return named_context.name == name

    return select


def validate_url(text: str) -> str:
    """Return ``text`` unchanged if it is an absolute URL with a host.

    Raises:
        InvalidServerURL: If the text cannot be used as a URL.
    """
    if not text or any(ch.isspace() for ch in text):
        msg = f"Invalid URL: {text!r}"
        raise InvalidServerURL(msg)
    try:
        parts = urlsplit(text)
        # Accessing the port validates it.
        parts.port  # noqa: B018
    except ValueError as e:
        msg = f"Invalid URL: {text!r}: {e}"
        raise InvalidServerURL(msg) from e
    if not parts.scheme or not parts.hostname:
        msg = f"Invalid URL: {text!r}. Expected scheme://host[:port]."
        raise InvalidServerURL(msg)
    return text


def _parse_proxy_url(text: str | None) -> str | None:
    if text is None:
        return None
    try:
        return validate_url(text)
    except InvalidServerURL as e:
        log.warning("proxy_url_ignored", error=str(e))
        return None


def _build(
    document: KubeConfig,
    selector: ContextSelector,
    timeout: Timeout,
    redirect: RedirectPolicy,
) -> ClientConfig:
    named_context = next((c for c in document.contexts if selector(c, document)), None)
    if named_context is None:
        msg = f"No matching context (current-context is {document.current_context!r})."
        raise ContextNotFound(msg)
    context = named_context.context

    cluster = next((c.cluster for c in document.clusters if c.name == context.cluster), None)
    if cluster is None:
        msg = f"Context {named_context.name!r} references unknown cluster {context.cluster!r}."
        raise ClusterNotFound(msg)

    server_url = validate_url(cluster.server)

    auth_info = next((u.user for u in document.users if u.name == context.user), None)
    if auth_info is None:
        msg = f"Context {named_context.name!r} references unknown user {context.user!r}."
        raise UserNotFound(msg)

    authentication = authenticate(auth_info, user=context.user)
    if authentication is None:
        msg = f"User {context.user!r} has no usable credentials."
        raise NoAuthenticationAvailable(msg)

    return ClientConfig(
        server_url=server_url,
        namespace=context.namespace or DEFAULT_NAMESPACE,
        authentication=authentication,
        trust_roots=load_trust_roots(cluster),
        insecure_skip_verify=(
            cluster.insecure_skip_tls_verify if cluster.insecure_skip_tls_verify is not None else True
        ),
        timeout=timeout,
        redirect_policy=redirect,
        proxy_url=_parse_proxy_url(cluster.proxy_url),
    )


def resolve(
    document: KubeConfig,
    selector: ContextSelector,
    timeout: Timeout | None = None,
    redirect: RedirectPolicy | None = None,
) -> ClientConfig | None:
    """Resolve the first context accepted by ``selector`` into a ClientConfig.

    Returns None when the context, its cluster, or its user cannot be found,
    when the server URL is invalid, or when no credential is usable.
    """
    try:
        return _build(document, selector, timeout or Timeout(), redirect or RedirectPolicy())
    except ConfigResolutionError as e:
        log.warning("kubeconfig_resolution_failed", reason=type(e).__name__, error=str(e))
        return None


def from_kubeconfig(
    document: KubeConfig,
    context: str | None = None,
    timeout: Timeout | None = None,
    redirect: RedirectPolicy | None = None,
) -> ClientConfig | None:
    """Resolve a named context, or the document's current context when ``context`` is None."""
    selector = current_context_selector if context is None else context_selector(context)
    return resolve(document, selector, timeout, redirect)

"""Pydantic v2 models for the kubeconfig document and the exec credential protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, Strict, field_validator


class _WireModel(BaseModel):
    """Frozen model that accepts both wire names and field names, ignoring unknown keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


# --- Kubeconfig document ---


class Cluster(_WireModel):
    """Network and TLS identity of one API endpoint."""

    server: str
    certificate_authority: str | None = Field(default=None, alias="certificate-authority")
    certificate_authority_data: str | None = Field(default=None, alias="certificate-authority-data")
    insecure_skip_tls_verify: bool | None = Field(default=None, alias="insecure-skip-tls-verify")
    proxy_url: str | None = Field(default=None, alias="proxy-url")


class NamedCluster(_WireModel):
    name: str
    cluster: Cluster


class Context(_WireModel):
    """Pairing of a cluster and a user, with an optional namespace override."""

    cluster: str
    user: str
    namespace: str | None = None


class NamedContext(_WireModel):
    name: str
    context: Context


class ExecEnvVar(_WireModel):
    name: str
    value: str


class ExecConfig(_WireModel):
    """Command line of an exec credential plugin."""

    command: str
    args: list[str] = Field(default_factory=list)
    env: list[ExecEnvVar] = Field(default_factory=list)
    api_version: str | None = Field(default=None, alias="apiVersion")

    @field_validator("args", "env", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class AuthInfo(_WireModel):
    """Credential material available for one principal."""

    username: str | None = None
    password: str | None = None
    token: str | None = None
    token_file: str | None = Field(default=None, alias="tokenFile")
    client_certificate: str | None = Field(default=None, alias="client-certificate")
    client_certificate_data: str | None = Field(default=None, alias="client-certificate-data")
    client_key: str | None = Field(default=None, alias="client-key")
    client_key_data: str | None = Field(default=None, alias="client-key-data")
    exec: ExecConfig | None = None


class NamedAuthInfo(_WireModel):
    name: str
    user: AuthInfo


class KubeConfig(_WireModel):
    """A parsed multi-context kubeconfig document.

    Names are assumed unique; lookups take the first match.
    """

    api_version: str | None = Field(default=None, alias="apiVersion")
    kind: str | None = None
    clusters: list[NamedCluster] = Field(default_factory=list)
    contexts: list[NamedContext] = Field(default_factory=list)
    users: list[NamedAuthInfo] = Field(default_factory=list)
    current_context: str | None = Field(default=None, alias="current-context")

    @field_validator("clusters", "contexts", "users", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# --- Exec credential protocol (client.authentication.k8s.io) ---


class ExecCredentialSpec(_WireModel):
    cluster: dict[str, Any] | None = None
    # Some providers require this field even though it is not used here.
    interactive: bool | None = None


class ExecCredentialStatus(_WireModel):
    expiration_timestamp: Annotated[datetime, Strict()] = Field(alias="expirationTimestamp")
    token: str
    client_certificate_data: str | None = Field(default=None, alias="clientCertificateData")
    client_key_data: str | None = Field(default=None, alias="clientKeyData")


class ExecCredential(_WireModel):
    """Payload an exec plugin writes to its standard output."""

    api_version: str = Field(alias="apiVersion")
    kind: str
    spec: ExecCredentialSpec = Field(default_factory=ExecCredentialSpec)
    status: ExecCredentialStatus

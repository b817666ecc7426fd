"""Failure taxonomy for configuration and credential resolution.

Public resolver functions never raise these; they are caught at the resolver
boundary, logged, and turned into "no configuration produced".
"""

from __future__ import annotations


class ConfigResolutionError(Exception):
    """Base class for every resolution failure."""


class ContextNotFound(ConfigResolutionError):
    """No context in the document matched the selector."""


class ClusterNotFound(ConfigResolutionError):
    """The selected context references a cluster that does not exist."""


class UserNotFound(ConfigResolutionError):
    """The selected context references a user that does not exist."""


class InvalidServerURL(ConfigResolutionError):
    """The cluster's server string is not a usable URL."""


class NoAuthenticationAvailable(ConfigResolutionError):
    """None of the authentication schemes could be satisfied."""


class CertificateLoadError(ConfigResolutionError):
    """PEM certificate or key material could not be read or parsed."""


class EnvironmentVariableMissing(ConfigResolutionError):
    """A required environment variable is not set."""


class RequiredFileMissing(ConfigResolutionError):
    """A required mounted file could not be read."""


class ExecFailure(ConfigResolutionError):
    """An exec credential plugin could not be located, run, or understood."""


class CredentialDecodeError(ExecFailure):
    """The plugin ran but its output is not a valid ExecCredential."""

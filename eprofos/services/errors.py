"""Errors raised by the prospect services."""

from __future__ import annotations


class ProspectError(Exception):
    pass


class InvalidIdentity(ProspectError, ValueError):
    """Missing or malformed email on a touchpoint or resolution call."""


class UnresolvableReference(ProspectError, LookupError):
    """A formation, service or touchpoint with no identity, or unknown to the store."""


class PersistenceFailure(ProspectError, RuntimeError):
    """The store rejected a commit. The transaction has been rolled back."""

"""Credential storage."""

from .credential_store import CredentialStore, Credentials

__all__ = ["CredentialStore", "Credentials"]

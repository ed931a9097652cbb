"""Encrypted integration storage and the step-side credential broker."""

from flowrun.credentials.broker import CredentialBroker
from flowrun.credentials.encryption import IntegrationEncryption
from flowrun.credentials.store import IntegrationStore

__all__ = ["CredentialBroker", "IntegrationEncryption", "IntegrationStore"]

"""
Altegio Onboarding — Platform Providers

HTTP client for the Altegio REST API and the local credential store it
persists user tokens in.
"""

from providers.altegio import AltegioClient
from providers.credentials import CredentialStore

__all__ = ["AltegioClient", "CredentialStore"]

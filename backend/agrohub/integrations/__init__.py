"""
External service integrations for AgroHub.

- identity: identity provider contract (tokens, credentials, email)
- supabase_auth: Supabase Auth implementation of that contract
"""

from agrohub.integrations.identity import (
    IdentityProvider,
    IdentityProviderError,
    IdentitySession,
    VerifiedToken,
)
from agrohub.integrations.supabase_auth import SupabaseIdentityProvider

__all__ = [
    "IdentityProvider",
    "IdentityProviderError",
    "IdentitySession",
    "VerifiedToken",
    "SupabaseIdentityProvider",
]

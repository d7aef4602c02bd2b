"""
Login identity providers

- local: auth_identity table in the application database
- supabase: Supabase GoTrue admin API
"""

from common.identity.base import IdentityHandle, IdentityProvider
from common.identity.local_provider import LocalIdentityProvider
from common.identity.supabase_provider import SupabaseIdentityProvider


def create_identity_provider(config) -> IdentityProvider:
    provider = (config.get('IDENTITY_PROVIDER') or 'local').lower()

    if provider == 'local':
        return LocalIdentityProvider()

    if provider == 'supabase':
        return SupabaseIdentityProvider(
            base_url=config.get('SUPABASE_URL'),
            service_role_key=config.get('SUPABASE_SERVICE_ROLE_KEY')
        )

    raise RuntimeError(f"Unknown IDENTITY_PROVIDER: {provider}")


__all__ = [
    'IdentityHandle',
    'IdentityProvider',
    'LocalIdentityProvider',
    'SupabaseIdentityProvider',
    'create_identity_provider'
]

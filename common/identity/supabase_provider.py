from typing import Any, Dict

import requests

from common.exception.exceptions import IdentityProviderError
from common.identity.base import IdentityHandle, IdentityProvider
from common.utils.logging_utils import get_logger

logger = get_logger('supabase_identity_provider')


class SupabaseIdentityProvider(IdentityProvider):
    """Supabase GoTrue admin API (/auth/v1/admin/users) with the service-role key."""

    def __init__(self, base_url: str, service_role_key: str, session: requests.Session = None):
        if not base_url or not service_role_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required")

        self.base_url = base_url.rstrip('/')
        self.service_role_key = service_role_key
        self.http = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            'apikey': self.service_role_key,
            'Authorization': f'Bearer {self.service_role_key}',
            'Content-Type': 'application/json'
        }

    @staticmethod
    def _error_message(response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f'HTTP {response.status_code}'
        return body.get('msg') or body.get('message') or body.get('error_description') or str(body)

    def create_identity(self, email: str, password: str, confirmed: bool = True,
                        metadata: Dict[str, Any] = None) -> IdentityHandle:
        payload = {
            'email': email,
            'password': password,
            'email_confirm': confirmed,
            'user_metadata': dict(metadata or {})
        }

        try:
            response = self.http.post(f'{self.base_url}/auth/v1/admin/users', json=payload, headers=self._headers())
        except requests.RequestException as e:
            raise IdentityProviderError(f"Identity provider unreachable: {e}") from e

        if response.status_code >= 400:
            raise IdentityProviderError(self._error_message(response), response.status_code)

        body = response.json()
        identity_id = body.get('id') or (body.get('user') or {}).get('id')
        if not identity_id:
            raise IdentityProviderError("Auth user created but no ID returned")

        logger.info(f"Identity created: {identity_id} ({email})")

        return IdentityHandle(
            identity_id=identity_id,
            email=body.get('email', email),
            metadata=body.get('user_metadata') or dict(metadata or {})
        )

    def delete_identity(self, identity_id: str) -> None:
        try:
            response = self.http.delete(f'{self.base_url}/auth/v1/admin/users/{identity_id}', headers=self._headers())
        except requests.RequestException as e:
            raise IdentityProviderError(f"Identity provider unreachable: {e}") from e

        if response.status_code == 404:
            logger.warning(f"Identity already gone: {identity_id}")
            return

        if response.status_code >= 400:
            raise IdentityProviderError(self._error_message(response), response.status_code)

        logger.info(f"Identity deleted: {identity_id}")

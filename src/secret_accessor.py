import logging
import os
from enum import Enum
from typing import Dict, Optional

from google.api_core.exceptions import GoogleAPICallError, RetryError
from google.cloud import secretmanager

from src.app_config import AppConfig
from src.errors import ConfigurationError, UpstreamServiceError

logger = logging.getLogger(__name__)


class SecretType(str, Enum):
    CONTENTFUL_ACCESS_TOKEN = 'CONTENTFUL_ACCESS_TOKEN'
    EMAIL_TOKEN_CLIENT_ID = 'EMAIL_TOKEN_CLIENT_ID'
    EMAIL_TOKEN_CLIENT_SECRET = 'EMAIL_TOKEN_CLIENT_SECRET'


def secret_version_path(project_id: str, secret: SecretType) -> str:
    """Return the Secret Manager resource name for the latest version of a secret."""
    return f"projects/{project_id}/secrets/{secret.value}/versions/latest"


class SecretAccessor:
    """
    Resolves named credentials for a single job invocation.

    In development mode values are read from environment variables named after
    the secret; otherwise they come from Secret Manager. Each secret is fetched
    at most once per accessor and is never written anywhere.
    """

    def __init__(self, config: AppConfig, client: Optional[secretmanager.SecretManagerServiceClient] = None):
        self._config = config
        self._client = client
        self._cache: Dict[SecretType, str] = {}

    def _get_client(self) -> secretmanager.SecretManagerServiceClient:
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def _read_from_store(self, secret: SecretType) -> Optional[str]:
        name = secret_version_path(self._config.secret_project_id, secret)
        try:
            response = self._get_client().access_secret_version(request={"name": name})
        except (GoogleAPICallError, RetryError) as e:
            logger.error(f"Failed to retrieve secret {secret.value}: {e}")
            raise UpstreamServiceError("secret-manager", f"could not access {secret.value}: {e}") from e
        return response.payload.data.decode("UTF-8")

    def get(self, secret: SecretType) -> str:
        """
        Return the value of a secret.

        Raises:
            ConfigurationError: If the secret is missing or empty.
            UpstreamServiceError: If the secret store call fails.
        """
        if secret in self._cache:
            return self._cache[secret]

        if self._config.is_development:
            value = os.environ.get(secret.value)
        else:
            value = self._read_from_store(secret)

        if not value:
            raise ConfigurationError(f"Secret {secret.value} is not set")

        self._cache[secret] = value
        logger.debug(f"Resolved secret {secret.value}")
        return value

"""HTTP client for the remote secret store."""

import logging
from typing import Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from backend.src.lifecycle.errors import DependencyUnreachableError

logger = logging.getLogger(__name__)


class SecretStoreClient(Protocol):
    """Minimal surface the ConfigurationProvider needs from a secret store."""

    def ping(self) -> None: ...

    def get_secret(self, name: str) -> Optional[str]: ...

    def close(self) -> None: ...


def secret_name_for(key: str) -> str:
    """Map a configuration key to a secret name (OPENAI_API_KEY -> openai-api-key)."""
    return key.strip().lower().replace("_", "-")


class HTTPSecretStoreClient:
    """Secret store client speaking a small REST protocol.

    `GET {url}/secrets/{name}` returns `{"value": ...}` or 404 when the secret
    does not exist; `GET {url}/secrets?maxresults=1` is used as a connectivity
    and credential check.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 5.0,
        max_retries: int = 3,
        retry_delay: float = 0.5,
    ):
        """Initialize the secret store client.

        Args:
            base_url: Base URL of the secret store (e.g., "https://vault.example.com")
            token: Optional bearer token
            timeout: Per-request timeout in seconds
            max_retries: Maximum number of retries for failed requests
            retry_delay: Backoff factor between retries in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        # Configure session with retry logic
        self.session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_delay,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def ping(self) -> None:
        """Check that the store is reachable and accepts our credentials.

        Raises:
            DependencyUnreachableError: On network errors, auth rejection or unexpected status
        """
        try:
            response = self.session.get(
                f"{self.base_url}/secrets",
                params={"maxresults": 1},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise DependencyUnreachableError(
                f"secret store at {self.base_url} unreachable: {e}"
            ) from e

        if response.status_code in (401, 403):
            raise DependencyUnreachableError(
                f"secret store rejected credentials (status {response.status_code})"
            )
        if response.status_code != 200:
            raise DependencyUnreachableError(
                f"secret store health check failed (status {response.status_code})"
            )
        logger.info(f"Connected to secret store at {self.base_url}")

    def get_secret(self, name: str) -> Optional[str]:
        """Fetch one secret.

        Args:
            name: Secret name, already mapped with secret_name_for()

        Returns:
            The secret value, or None if the store has no such secret

        Raises:
            requests.exceptions.RequestException: On network errors or unexpected status
        """
        response = self.session.get(
            f"{self.base_url}/secrets/{name}", timeout=self.timeout
        )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        value = response.json().get("value")
        return None if value is None else str(value)

    def close(self) -> None:
        self.session.close()

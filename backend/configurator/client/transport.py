"""HTTP client for the validation service boundary.

Only transport problems raise: an application-level {"valid": false} answer
is a normal ValidationResult.
"""

from typing import Any, Mapping, Optional

import httpx
import structlog

from configurator.config import get_settings
from configurator.errors import TransportError
from configurator.rules.models import ValidationResult

logger = structlog.get_logger()

VALIDATE_PATH = "/api/validate"


class ValidationServiceClient:
    """Posts configurations to the validation service.

    Usage:
        async with ValidationServiceClient() as client:
            result = await client.validate({"model": "B"})
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.base_url = base_url or settings.VALIDATION_SERVICE_URL
        self.timeout = timeout or settings.VALIDATION_TIMEOUT_SECONDS
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

    async def __aenter__(self) -> "ValidationServiceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    async def validate(self, configuration: Mapping[str, Any]) -> ValidationResult:
        """Ask the service for the authoritative verdict.

        Raises:
            TransportError: request that cannot be sent, connection failure,
                timeout, non-2xx status, or a body that is not a
                {valid, violations} object
        """
        try:
            response = await self._http_client.post(VALIDATE_PATH, json=dict(configuration))
        except httpx.TimeoutException as e:
            logger.warning("validation_transport_failed", reason="timeout", error=str(e))
            raise TransportError(f"Validation service timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.warning("validation_transport_failed", reason="connection", error=str(e))
            raise TransportError(f"Validation service unreachable: {e}") from e
        except (httpx.InvalidURL, RuntimeError, TypeError) as e:
            # Closed client, bad base URL, or a payload that is not JSON-serializable
            logger.warning("validation_transport_failed", reason="request", error=str(e), error_type=type(e).__name__)
            raise TransportError(f"Validation request could not be sent: {e}") from e

        if not response.is_success:
            logger.warning("validation_transport_failed", reason="status", status_code=response.status_code)
            raise TransportError(
                f"Validation service answered HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return ValidationResult.model_validate(response.json())
        except ValueError as e:  # bad JSON or wrong shape
            logger.warning("validation_transport_failed", reason="body", error=str(e))
            raise TransportError(
                f"Validation service returned an unreadable body: {e}",
                status_code=response.status_code,
            ) from e

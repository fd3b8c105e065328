"""HTTP client for AnkiConnect API communication."""

from types import TracebackType
from typing import Any, Literal

import httpx

from obsidian_deck_sync.error_codes import ErrorCode
from obsidian_deck_sync.exceptions import (
    AnkiConnectError,
    AnkiConnectionError,
    AnkiPermissionError,
)
from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PROTOCOL_VERSION = 6


class AnkiHttpClient:
    """Async client for the AnkiConnect JSON protocol.

    Every request is a POST of ``{action, params, version[, key]}`` answered by
    ``{result, error}``. Requests are never retried: a failed call surfaces
    immediately to the caller.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        api_key: str | None = None,
        version: int = DEFAULT_PROTOCOL_VERSION,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize HTTP client.

        Args:
            url: AnkiConnect URL
            timeout: Request timeout in seconds
            api_key: Optional AnkiConnect API key
            version: Protocol version sent until the handshake negotiates one
            client: Pre-built httpx client (mainly for tests)
        """
        self.url = url
        self.api_key = api_key
        self.version = version
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            limits=httpx.Limits(max_keepalive_connections=2, max_connections=4),
        )

        logger.debug("anki_http_client_initialized", url=url, timeout=timeout)

    def _payload(self, action: str, params: dict[str, Any] | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "action": action,
            "params": params or {},
            "version": self.version,
        }
        if self.api_key:
            payload["key"] = self.api_key
        return payload

    async def invoke(self, action: str, params: dict[str, Any] | None = None) -> Any:
        """
        Invoke an AnkiConnect action.

        Args:
            action: Action name
            params: Action parameters

        Returns:
            Action result

        Raises:
            AnkiConnectionError: If AnkiConnect cannot be reached
            AnkiConnectError: If the action fails or the response is malformed
        """
        payload = self._payload(action, params)
        context = {"action": action, "params": params or {}}

        logger.debug("anki_invoke", action=action)

        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
        except (httpx.TimeoutException, httpx.ConnectError, httpx.NetworkError) as e:
            msg = f"Cannot connect to AnkiConnect at {self.url}: {e}"
            raise AnkiConnectionError(
                msg,
                suggestion="Ensure Anki is running with the AnkiConnect add-on enabled.",
                error_code=ErrorCode.ANK_CONNECTION_FAILED.value,
                context=context,
            ) from e
        except httpx.HTTPStatusError as e:
            msg = f"HTTP {e.response.status_code} from AnkiConnect"
            raise AnkiConnectError(
                msg,
                error_code=ErrorCode.ANK_INVALID_RESPONSE.value,
                context=context,
            ) from e
        except httpx.HTTPError as e:
            msg = f"HTTP error calling AnkiConnect: {e}"
            raise AnkiConnectionError(
                msg,
                error_code=ErrorCode.ANK_CONNECTION_FAILED.value,
                context=context,
            ) from e

        try:
            result = response.json()
        except ValueError as e:
            msg = f"Invalid JSON response: {e}"
            raise AnkiConnectError(
                msg, error_code=ErrorCode.ANK_INVALID_RESPONSE.value, context=context
            ) from e

        # Validate response structure
        if not isinstance(result, dict) or "result" not in result or "error" not in result:
            msg = f"Malformed response to {action}: {result!r}"
            raise AnkiConnectError(
                msg, error_code=ErrorCode.ANK_INVALID_RESPONSE.value, context=context
            )

        if result["error"] is not None:
            msg = f"AnkiConnect error: {result['error']}"
            raise AnkiConnectError(
                msg, error_code=ErrorCode.ANK_ACTION_FAILED.value, context=context
            )

        return result["result"]

    async def request_permission(self) -> dict[str, Any]:
        """Perform the permission handshake and adopt the advertised version.

        Raises:
            AnkiPermissionError: If permission is denied, or a key is required
                but none is configured
            AnkiConnectionError: If AnkiConnect cannot be reached
        """
        try:
            result = await self.invoke("requestPermission")
        except AnkiConnectError as e:
            msg = f"AnkiConnect handshake failed: {e.message}"
            raise AnkiConnectionError(
                msg,
                error_code=ErrorCode.ANK_CONNECTION_FAILED.value,
                context=e.context,
            ) from e

        if not isinstance(result, dict) or result.get("permission") != "granted":
            raise AnkiPermissionError(
                "AnkiConnect denied the permission request",
                suggestion="Accept the permission prompt in Anki, or add this "
                "origin to AnkiConnect's webCorsOriginList.",
                error_code=ErrorCode.ANK_PERMISSION_DENIED.value,
                context={"response": result},
            )

        if result.get("requireApikey") and not self.api_key:
            raise AnkiPermissionError(
                "AnkiConnect requires an API key",
                suggestion="Set anki_api_key in config.yaml to AnkiConnect's apiKey.",
                error_code=ErrorCode.ANK_API_KEY_REQUIRED.value,
            )

        version = result.get("version")
        if isinstance(version, int):
            self.version = version

        logger.info("anki_permission_granted", url=self.url, version=self.version)
        return result

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AnkiHttpClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        """Async context manager exit with cleanup."""
        await self.aclose()
        return False

"""
Transport for the coach chat backend.

The backend is a POST endpoint that either streams its reply (default) or,
when the request carries `x-no-stream: 1`, returns one full body.
"""

import logging
from typing import Any, AsyncIterator, Optional

import httpx
import orjson

from coach.config import settings

logger = logging.getLogger(__name__)

# Constants
NO_STREAM_HEADER = "x-no-stream"


class ChatTransportError(Exception):
    """The backend could not be reached or answered with a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ChatBackend:
    """Streams raw reply bytes from the coach backend"""

    name = "coach-backend"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        stream: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.chat_backend_url).rstrip("/")
        self.api_token = api_token if api_token is not None else settings.chat_api_token
        self.stream = settings.stream_responses if stream is None else stream

        # Authorization is optional for a local backend
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=transport,
        )

    @property
    def timeout(self) -> float:
        """Get the configured request timeout in seconds."""
        return float(settings.request_timeout)

    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def stream_reply(self, payload: dict[str, Any]) -> AsyncIterator[bytes]:
        """
        POST the chat payload and yield the reply as raw byte chunks.

        With streaming off the whole body is yielded as a single chunk.
        Closing this generator early closes the upstream response.

        Raises:
            ChatTransportError: on connection failure or non-success status
        """
        headers = {} if self.stream else {NO_STREAM_HEADER: "1"}
        try:
            async with self._client.stream(
                "POST", settings.chat_endpoint, json=payload, headers=headers
            ) as response:
                if response.status_code >= 400:
                    error_body = await response.aread()
                    error_msg = self._error_message(error_body)
                    logger.error(
                        f"Chat backend error: status={response.status_code}, error={error_msg}"
                    )
                    raise ChatTransportError(
                        f"Chat backend returned {response.status_code}: {error_msg}",
                        status_code=response.status_code,
                    )

                if not self.stream:
                    body = await response.aread()
                    if body:
                        yield body
                    return

                async for chunk in response.aiter_bytes():
                    if chunk:
                        yield chunk
        except httpx.HTTPError as e:
            logger.error(f"Chat backend transport failure: {e!r}")
            raise ChatTransportError(str(e) or type(e).__name__) from e

    @staticmethod
    def _error_message(error_body: bytes) -> str:
        """Read the error message from a failed response body."""
        try:
            error_json = orjson.loads(error_body)
        except orjson.JSONDecodeError:
            return error_body.decode("utf-8", errors="replace")
        if isinstance(error_json, dict):
            error = error_json.get("error")
            if isinstance(error, dict):
                error = error.get("message")
            message = error or error_json.get("message")
            if message:
                return str(message)
        return error_body.decode("utf-8", errors="replace")

    async def cleanup(self):
        """Cleanup HTTP client resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

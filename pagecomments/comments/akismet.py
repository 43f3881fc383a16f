"""Akismet comment-check client.

Akismet answers a form POST with a bare ``true`` (spam) or ``false`` (ham)
body. The API key is part of the endpoint host name, so URLs built here are
never logged.
"""

import httpx
import structlog

from .exceptions import ClassifierProtocolError, ClassifierUnavailableError
from .models import parse_bool


logger = structlog.get_logger(__name__)

DEFAULT_ENDPOINT = "https://{key}.rest.akismet.com/1.1/comment-check"


class AkismetClient:
    """Binary spam/ham classifier backed by Akismet."""

    def __init__(
        self,
        api_key: str | None,
        blog_url: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key or None
        self.blog_url = blog_url
        self._endpoint = endpoint
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def configured(self) -> bool:
        """True when an API key is set; without one nothing is ever sent."""
        return self._api_key is not None

    async def is_spam(self, fields: dict[str, str]) -> bool:
        """Ask Akismet whether a comment is spam.

        Args:
            fields: Comment data keyed by comment-check parameter names.

        Raises:
            ClassifierUnavailableError: Network failure, timeout or error status.
            ClassifierProtocolError: Body is not a boolean literal.
        """
        if not self.configured:
            msg = "Akismet API key is not configured"
            raise ClassifierUnavailableError(msg)

        data = {"blog": self.blog_url, **fields}
        url = self._endpoint.format(key=self._api_key)

        try:
            response = await self._http.post(url, data=data)
        except httpx.TimeoutException as e:
            logger.error("akismet_timeout", error_type=type(e).__name__)
            raise ClassifierUnavailableError("Akismet timeout") from e
        except httpx.RequestError as e:
            logger.error("akismet_request_error", error_type=type(e).__name__)
            raise ClassifierUnavailableError(
                f"Akismet request error: {type(e).__name__}"
            ) from e

        if response.status_code != httpx.codes.OK:
            logger.error(
                "akismet_request_failed",
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise ClassifierUnavailableError(
                f"Akismet API error: {response.status_code}"
            )

        body = response.text
        try:
            return parse_bool(body)
        except ValueError as e:
            logger.error(
                "akismet_unexpected_response",
                body=body[:200],
                debug_help=response.headers.get("X-akismet-debug-help"),
            )
            raise ClassifierProtocolError(
                f"unexpected return value from akismet: {body[:200]}"
            ) from e

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

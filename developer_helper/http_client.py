"""
HTTP client helper built on httpx.

Every request goes through a retry policy wrapped around a circuit breaker:
transport errors and non-2xx responses count as failures, an open circuit is
reported as ``ServiceUnavailableError`` without further retries.
"""

from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from .circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from .config import HelperConfig, get_config
from .errors import HttpRequestError, InvalidArgumentError, ServiceUnavailableError
from .logging import get_logger, log_error
from .retry import RetryConfig, RetryError, retry_async

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'",
}


class HttpClientHelper:
    """Async JSON/text HTTP client with retry and circuit breaker policies."""

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        retry_config: Optional[RetryConfig] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Optional[HelperConfig] = None,
    ):
        config = config or get_config()
        self.logger = get_logger("http_client")
        self.retry_config = retry_config or RetryConfig.from_retries(
            config.http_retry_attempts,
            config.http_retry_base_delay,
        )
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=config.http_failure_threshold,
            recovery_timeout=config.http_recovery_timeout,
            expected_exceptions=(httpx.HTTPError,),
            name="http_client",
        )
        self._client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else config.http_timeout_seconds,
            headers={**DEFAULT_SECURITY_HEADERS, **(headers or {})},
            transport=transport,
        )

    async def __aenter__(self) -> "HttpClientHelper":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_text(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        response = await self.request("GET", url, headers=headers)
        return response.text

    async def get_json(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        model: Optional[Type[ModelT]] = None,
    ) -> Any:
        response = await self.request("GET", url, headers=headers)
        return self._decode(response, model)

    async def post_json(
        self,
        url: str,
        data: Any,
        headers: Optional[Dict[str, str]] = None,
        model: Optional[Type[ModelT]] = None,
    ) -> Any:
        response = await self.request("POST", url, data=data, headers=headers)
        return self._decode(response, model)

    async def put_json(
        self,
        url: str,
        data: Any,
        headers: Optional[Dict[str, str]] = None,
        model: Optional[Type[ModelT]] = None,
    ) -> Any:
        response = await self.request("PUT", url, data=data, headers=headers)
        return self._decode(response, model)

    async def delete_text(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        response = await self.request("DELETE", url, headers=headers)
        return response.text

    async def delete_json(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        model: Optional[Type[ModelT]] = None,
    ) -> Any:
        response = await self.request("DELETE", url, headers=headers)
        return self._decode(response, model)

    async def request(
        self,
        method: str,
        url: str,
        *,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """Send a request through the retry and circuit breaker policies."""
        self._validate_url(url)
        payload = self._to_jsonable(data)

        try:
            return await retry_async(
                self.circuit_breaker.call,
                self._send,
                method,
                url,
                payload,
                headers,
                exceptions=(httpx.HTTPError,),
                config=self.retry_config,
            )
        except CircuitBreakerOpenError as exc:
            log_error("Circuit breaker is open - service unavailable", exc_info=exc, method=method, url=url)
            raise ServiceUnavailableError(
                "Service is temporarily unavailable",
                details={"url": url, "circuit_breaker": exc.name},
            ) from exc
        except RetryError as exc:
            last = exc.last_exception
            status_code = last.response.status_code if isinstance(last, httpx.HTTPStatusError) else None
            log_error(f"Failed to send {method} request: {last}", exc_info=last, url=url, attempts=exc.attempts)
            raise HttpRequestError(
                f"{method} {url} failed after {exc.attempts} attempts",
                status_code=status_code,
                details={"url": url, "error": str(last)},
            ) from last

    async def _send(
        self,
        method: str,
        url: str,
        payload: Any,
        headers: Optional[Dict[str, str]],
    ) -> httpx.Response:
        response = await self._client.request(method, url, json=payload, headers=headers)
        response.raise_for_status()
        self.logger.debug("HTTP request completed", method=method, url=url, status_code=response.status_code)
        return response

    def _decode(self, response: httpx.Response, model: Optional[Type[ModelT]]) -> Any:
        try:
            if not response.content:
                return None
            body = response.json()
            return model.model_validate(body) if model is not None else body
        except ValueError as exc:
            log_error(f"Failed to decode response body: {exc}", exc_info=exc, url=str(response.request.url))
            raise HttpRequestError(
                "Invalid JSON response",
                status_code=response.status_code,
                details={"url": str(response.request.url), "error": str(exc)},
            ) from exc

    @staticmethod
    def _to_jsonable(data: Any) -> Any:
        """Drop ``None`` fields from request bodies."""
        if isinstance(data, BaseModel):
            return data.model_dump(mode="json", exclude_none=True)
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @staticmethod
    def _validate_url(url: str) -> None:
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as exc:
            raise InvalidArgumentError("Invalid URL format", details={"url": repr(url)}) from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise InvalidArgumentError("Invalid URL format", details={"url": url})

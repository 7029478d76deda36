"""
WooCommerce REST adapter.

Uniform async get/post/put/delete over the synchronous `woocommerce.API`
client. Construction never blocks: the client is built by a background task
and every verb waits (bounded polling) until it is ready.

Usage:
    adapter = await WooCommerceAdapter.create(options)
    response = await adapter.get("products", {"per_page": 1})
"""

import asyncio
import contextlib
import inspect
import time
from collections.abc import Callable
from typing import Any

from woocommerce import API

from src.domain.errors import WooCommerceInitError, WooCommerceInitTimeoutError
from src.domain.woocommerce import WooCommerceOptions
from src.logger.logger import get_logger
from src.logger.types import Category, duration_ms, param

INIT_POLL_INTERVAL = 0.1
INIT_MAX_ATTEMPTS = 10


class WooCommerceAdapter:
    """Request-scoped handle over one WooCommerce REST client."""

    def __init__(
        self,
        options: WooCommerceOptions,
        api_factory: Callable[..., Any] = API,
        poll_interval: float = INIT_POLL_INTERVAL,
        max_attempts: int = INIT_MAX_ATTEMPTS,
    ) -> None:
        """
        Initialize adapter and schedule client construction.

        Args:
            options: Shop URL, credentials, API version and transport options
            api_factory: Client constructor (sync or async), woocommerce.API by default
            poll_interval: Seconds between readiness checks
            max_attempts: Readiness checks before giving up
        """
        self.options = options
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.logger = get_logger().with_category(Category.EXTERNAL_API)

        self._api_factory = api_factory
        self._api: Any = None
        self._init_error: Exception | None = None
        self._init_task: asyncio.Task[None] | None = None

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Нет running loop - инициализация стартует при первом вызове
            pass
        else:
            self.start()

    @classmethod
    async def create(
        cls, options: WooCommerceOptions, **kwargs: Any
    ) -> "WooCommerceAdapter":
        """
        Build an adapter and return once its client is ready.

        Raises:
            WooCommerceInitError: client construction failed
            WooCommerceInitTimeoutError: construction did not finish in time
        """
        adapter = cls(options, **kwargs)
        task = adapter.start()
        try:
            await asyncio.wait_for(task, timeout=adapter.poll_interval * adapter.max_attempts)
        except asyncio.TimeoutError as e:
            raise WooCommerceInitTimeoutError(adapter.max_attempts, adapter.poll_interval) from e
        if adapter._init_error is not None:
            raise WooCommerceInitError(
                f"Could not initialize WooCommerce API: {adapter._init_error}"
            ) from adapter._init_error
        return adapter

    @property
    def ready(self) -> bool:
        return self._api is not None

    def start(self) -> "asyncio.Task[None]":
        """Schedule client construction (idempotent)."""
        if self._init_task is None:
            self._init_task = asyncio.get_running_loop().create_task(self._initialize())
        return self._init_task

    async def close(self) -> None:
        """Cancel a pending initialization."""
        if self._init_task and not self._init_task.done():
            self._init_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._init_task

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """GET endpoint with query params."""
        return await self._request("get", endpoint, params=params)

    async def post(
        self, endpoint: str, data: Any, params: dict[str, Any] | None = None
    ) -> Any:
        """POST JSON body to endpoint."""
        return await self._request("post", endpoint, data=data, params=params, has_body=True)

    async def put(
        self, endpoint: str, data: Any, params: dict[str, Any] | None = None
    ) -> Any:
        """PUT JSON body to endpoint."""
        return await self._request("put", endpoint, data=data, params=params, has_body=True)

    async def delete(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """DELETE endpoint with query params."""
        return await self._request("delete", endpoint, params=params)

    async def _initialize(self) -> None:
        try:
            version = self.options.api_version
            missing = [
                name
                for name in ("url", "consumer_key", "consumer_secret")
                if not getattr(self.options, name)
            ]
            if missing:
                raise ValueError(f"missing {', '.join(missing)}")

            api = self._api_factory(
                url=self.options.url,
                consumer_key=self.options.consumer_key,
                consumer_secret=self.options.consumer_secret,
                version=version.value,
                wp_api=not version.is_legacy,
                timeout=self.options.timeout,
                verify_ssl=self.options.verify_ssl,
                query_string_auth=self.options.query_string_auth,
            )
            if inspect.isawaitable(api):
                api = await api
            self._api = api

            self.logger.debug(
                "WooCommerce API initialized",
                param("url", self.options.url),
                param("version", version.value),
            )
        except Exception as e:
            self._init_error = e
            self.logger.error(
                "Error initializing WooCommerce API",
                e,
                param("url", self.options.url),
            )

    async def _ensure_ready(self) -> Any:
        if self._api is None:
            self.start()
            await self._wait_for_initialization()
        return self._api

    async def _wait_for_initialization(self) -> None:
        """
        Poll for readiness every poll_interval, at most max_attempts times.

        Raises:
            WooCommerceInitError: construction failed
            WooCommerceInitTimeoutError: still not ready after max_attempts
        """
        attempts = 0
        while self._api is None and self._init_error is None and attempts < self.max_attempts:
            await asyncio.sleep(self.poll_interval)
            attempts += 1

        if self._init_error is not None:
            raise WooCommerceInitError(
                f"Could not initialize WooCommerce API: {self._init_error}"
            ) from self._init_error

        if self._api is None:
            self.logger.warn(
                "WooCommerce API not ready after bounded wait",
                param("attempts", attempts),
                param("url", self.options.url),
            )
            raise WooCommerceInitTimeoutError(self.max_attempts, self.poll_interval)

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        params: dict[str, Any] | None = None,
        has_body: bool = False,
    ) -> Any:
        api = await self._ensure_ready()

        args: tuple[Any, ...] = (endpoint, data) if has_body else (endpoint,)
        kwargs: dict[str, Any] = {}
        if params is not None:
            kwargs["params"] = params

        started = time.monotonic()
        try:
            response = await asyncio.to_thread(getattr(api, method), *args, **kwargs)
            # HTTP 4xx/5xx -> requests.HTTPError с исходным response
            response.raise_for_status()
        except Exception as e:
            self.logger.warn(
                f"WooCommerce {method.upper()} {endpoint} failed",
                param("endpoint", endpoint),
                param("error", str(e)),
                duration_ms(int((time.monotonic() - started) * 1000)),
            )
            raise

        self.logger.debug(
            f"WooCommerce {method.upper()} {endpoint}",
            param("endpoint", endpoint),
            param("status", getattr(response, "status_code", None)),
            duration_ms(int((time.monotonic() - started) * 1000)),
        )
        return response

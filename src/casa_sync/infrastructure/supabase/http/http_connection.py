"""
This module provides the SupabaseHttpConnection class for managing asynchronous HTTP connections to the Supabase REST (PostgREST) API.
It handles API key headers, schema profile headers and client lifecycle.
"""

import logging
from types import TracebackType
from typing import Optional, Type

import httpx

from casa_sync.common.utility import LoggerMixin


class SupabaseHttpConnection(LoggerMixin):
    """
    Manages an asynchronous HTTP connection to the Supabase REST API.
    Provides context manager support for automatic cleanup.
    """

    _client: Optional[httpx.AsyncClient] = None
    _supabase_url: str
    _api_key: str
    _schema: str

    def __init__(
        self,
        *,
        supabase_url: str,
        api_key: str,
        logger: logging.Logger,
        schema: str = "public",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the connection and the HTTPX AsyncClient bound to ``<supabase_url>/rest/v1``.
        """
        self._supabase_url = supabase_url.rstrip("/")
        self._api_key = api_key
        self._schema = schema
        self._build_logger(logger=logger)
        self._client = httpx.AsyncClient(
            base_url=f"{self._supabase_url}/rest/v1",
            headers=self._headers,
            timeout=timeout,
            transport=transport,
        )
        self._logger.debug(f"HTTP client created for {self._supabase_url}")

    async def aclose(self) -> None:
        """
        Asynchronously closes the HTTP client. Raises RuntimeError if already closed.
        """
        if self._client is None:
            self._logger.error("Client is not initialized")
            raise RuntimeError("Client is not initialized")

        await self._client.aclose()
        self._client = None
        self._logger.info("Closed Supabase HTTP client.")

    @property
    def client(self) -> httpx.AsyncClient:
        """
        Returns the initialized HTTPX AsyncClient. Raises RuntimeError if not initialized.
        """
        return self._assert_client_initialized()

    @property
    def supabase_url(self) -> str:
        return self._supabase_url

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def schema(self) -> str:
        return self._schema

    @property
    def is_closed(self) -> bool:
        return self._client is None

    @property
    def _headers(self) -> dict[str, str]:
        """
        Returns the API key, bearer and schema profile headers.
        """
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Accept-Profile": self._schema,
            "Content-Profile": self._schema,
        }

    def _assert_client_initialized(self) -> httpx.AsyncClient:
        if self._client is None:
            self._logger.error("Client is not initialized")
            raise RuntimeError("Client is not initialized")

        return self._client

    async def __aenter__(self) -> "SupabaseHttpConnection":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        """
        Asynchronous context manager exit. Closes the connection if still open.
        """
        if self._client is not None:
            await self.aclose()

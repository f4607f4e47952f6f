"""HTTP transport for the OGS backend.

A TransportContext is built explicitly for one of two routes:

- ``backend``: requests go straight to the API root.
- ``proxy``: requests go through the web frontend's ``/api`` proxy.

Both send JSON with a bearer token obtained from a TokenProvider. A 401 is
answered by one token refresh and one retry; every other non-2xx status is
raised as OGSAPIError carrying the status.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from .auth import StaticTokenProvider, TokenProvider
from .const import DEFAULT_HEADERS, DEFAULT_TIMEOUT, MODE_BACKEND, MODE_PROXY, PROXY_PREFIX
from .exceptions import OGSAPIError, OGSAuthError, OGSConnectionError, OGSDataError

_LOGGER = logging.getLogger(__name__)


class TransportContext:
	"""Route, session and credentials for talking to the backend."""

	def __init__(
		self,
		base_url: str,
		mode: str = MODE_BACKEND,
		session: Optional[aiohttp.ClientSession] = None,
		token_provider: Optional[TokenProvider] = None,
		timeout: float = DEFAULT_TIMEOUT,
	):
		"""Initialise transport context.

		Args:
			base_url: API root (backend mode) or frontend origin (proxy mode)
			mode: MODE_BACKEND or MODE_PROXY
			session: Optional aiohttp session. If None, one is created on entry.
			token_provider: Source of bearer tokens; None sends no token
			timeout: Total request timeout in seconds for an owned session
		"""
		if mode not in (MODE_BACKEND, MODE_PROXY):
			raise ValueError(f"Unknown transport mode: {mode!r}")
		self.base_url = base_url.rstrip("/")
		self.mode = mode
		self.token_provider = token_provider or StaticTokenProvider()
		self.timeout = timeout
		self._session = session
		self._own_session = session is None

	@classmethod
	def backend(cls, base_url: str, session: Optional[aiohttp.ClientSession] = None,
				token_provider: Optional[TokenProvider] = None, **kwargs) -> "TransportContext":
		return cls(base_url, MODE_BACKEND, session, token_provider, **kwargs)

	@classmethod
	def proxy(cls, base_url: str, session: Optional[aiohttp.ClientSession] = None,
			  token_provider: Optional[TokenProvider] = None, **kwargs) -> "TransportContext":
		return cls(base_url, MODE_PROXY, session, token_provider, **kwargs)

	async def __aenter__(self):
		if self._session is None:
			self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
			self._own_session = True
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		await self.close()

	async def close(self) -> None:
		if self._own_session and self._session:
			await self._session.close()
			self._session = None

	@property
	def session(self) -> aiohttp.ClientSession:
		if self._session is None:
			raise OGSConnectionError("Transport has no session; use it as an async context manager")
		return self._session

	def url(self, path: str) -> str:
		"""Build the absolute URL for an API path such as ``/active/groups``."""
		if not path.startswith("/"):
			path = f"/{path}"
		if self.mode == MODE_PROXY:
			return f"{self.base_url}{PROXY_PREFIX}{path}"
		return f"{self.base_url}{path}"

	async def _headers(self, token: Optional[str]) -> Dict[str, str]:
		headers = DEFAULT_HEADERS.copy()
		if token:
			headers["Authorization"] = f"Bearer {token}"
		return headers

	async def request(
		self,
		method: str,
		path: str,
		operation: str,
		body: Any = None,
		not_found_ok: bool = False,
	) -> Any:
		"""Send one request and return the decoded JSON body.

		Args:
			method: HTTP method
			path: API path relative to the API root
			operation: Human readable name used in logs and error messages
			body: JSON body, omitted when None
			not_found_ok: Treat 404 as "no data" and return None

		Returns:
			Decoded JSON, or None for empty bodies and tolerated 404s
		"""
		token = await self.token_provider.get_token()
		status, payload, text = await self._send(method, path, operation, body, token)

		if status == 401:
			_LOGGER.debug(f"{operation}: token rejected, refreshing")
			try:
				token = await self.token_provider.refresh(token)
			except OGSAuthError as e:
				_LOGGER.error(f"{operation} error: 401 and token refresh failed: {e}")
				raise OGSAuthError(f"{operation} failed: 401", status=401, operation=operation) from e
			status, payload, text = await self._send(method, path, operation, body, token)

		if status == 404 and not_found_ok:
			_LOGGER.debug(f"{operation}: 404 treated as no data")
			return None

		if status < 200 or status >= 300:
			_LOGGER.error(f"{operation} error: {status} {text[:200]}")
			error_cls = OGSAuthError if status in (401, 403) else OGSAPIError
			raise error_cls(f"{operation} failed: {status}", status=status, operation=operation)

		return payload

	async def _send(self, method: str, path: str, operation: str, body: Any, token: Optional[str]):
		url = self.url(path)
		headers = await self._headers(token)
		kwargs: Dict[str, Any] = {"headers": headers}
		if body is not None:
			kwargs["json"] = body

		_LOGGER.debug(f"{operation}: {method} {url}")
		try:
			async with self.session.request(method, url, **kwargs) as resp:
				text = await resp.text()
				if resp.status < 200 or resp.status >= 300:
					return resp.status, None, text
				return resp.status, self._decode(text, operation), text
		except aiohttp.ClientError as e:
			raise OGSConnectionError(f"{operation} failed: connection error: {e}") from e
		except asyncio.TimeoutError as e:
			raise OGSConnectionError(f"{operation} failed: timeout") from e

	@staticmethod
	def _decode(text: str, operation: str) -> Any:
		if not text or not text.strip():
			return None
		try:
			return json.loads(text)
		except json.JSONDecodeError as e:
			_LOGGER.error(f"Failed to parse {operation} response as JSON: {text[:200]}...")
			raise OGSDataError(f"Invalid JSON response from {operation}") from e

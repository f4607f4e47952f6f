"""Bearer token handling for the OGS backend.

Issuing tokens is somebody else's job; this module only hands them to the
transport and coordinates refreshes so that any number of concurrent
requests hitting an expired token trigger a single refresh call.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .exceptions import OGSAuthError

_LOGGER = logging.getLogger(__name__)

RefreshCallback = Callable[[], Awaitable[str]]


class TokenProvider:
	"""Source of bearer tokens used by the transport."""

	async def get_token(self) -> Optional[str]:
		raise NotImplementedError

	async def refresh(self, stale_token: Optional[str] = None) -> Optional[str]:
		"""Return a fresh token after `stale_token` was rejected."""
		raise NotImplementedError


class StaticTokenProvider(TokenProvider):
	"""Fixed token, e.g. from configuration. Cannot be refreshed."""

	def __init__(self, token: Optional[str] = None) -> None:
		self._token = token

	async def get_token(self) -> Optional[str]:
		return self._token

	async def refresh(self, stale_token: Optional[str] = None) -> Optional[str]:
		raise OGSAuthError("Token rejected and no refresh is available", status=401, operation="Refresh token")


class TokenRefresher(TokenProvider):
	"""Token provider with single-flight refresh.

	- At most one refresh task runs at a time; every caller arriving while
	  it runs awaits that task, whatever token it reports as stale.
	- Callers reporting a token that was already replaced get the new one
	  without another round trip.
	"""

	def __init__(self, refresh_callback: RefreshCallback, token: Optional[str] = None) -> None:
		self._refresh_callback = refresh_callback
		self._token = token
		self._lock = asyncio.Lock()
		self._refresh_task: Optional[asyncio.Task] = None

	@property
	def token(self) -> Optional[str]:
		return self._token

	async def get_token(self) -> Optional[str]:
		if self._token is None:
			return await self.refresh(None)
		return self._token

	async def refresh(self, stale_token: Optional[str] = None) -> Optional[str]:
		async with self._lock:
			task = self._refresh_task
			if task is None or task.done():
				if self._token is not None and self._token != stale_token:
					return self._token
				_LOGGER.debug("Starting token refresh")
				task = asyncio.create_task(self._run_refresh())
				self._refresh_task = task

		return await asyncio.shield(task)

	async def _run_refresh(self) -> str:
		try:
			token = await self._refresh_callback()
			if not token:
				raise OGSAuthError("Token refresh returned no token", status=401, operation="Refresh token")
			self._token = token
			_LOGGER.debug("Token refreshed")
			return token
		except OGSAuthError:
			raise
		except Exception as e:
			_LOGGER.error(f"Token refresh failed: {e}")
			raise OGSAuthError(f"Token refresh failed: {e}", status=401, operation="Refresh token") from e
		finally:
			self._refresh_task = None

	def invalidate(self) -> None:
		"""Forget the current token so the next request refreshes it."""
		self._token = None

"""Shared fixtures: a stand-in for aiohttp.ClientSession built on unittest.mock."""

import json
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add the package root to the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from ogs_presence.auth import StaticTokenProvider
from ogs_presence.client import ActiveServiceClient
from ogs_presence.transport import TransportContext

API_URL = "https://api.example.org"


def mock_response(status: int, body: Any = None) -> AsyncMock:
	"""Response whose text() yields `body`, JSON encoded unless already a string."""
	if body is None:
		text = ""
	elif isinstance(body, str):
		text = body
	else:
		text = json.dumps(body)
	response = AsyncMock()
	response.status = status
	response.text = AsyncMock(return_value=text)
	return response


def _request_context(response: Optional[AsyncMock] = None, error: Optional[BaseException] = None) -> MagicMock:
	context = MagicMock()
	if error is not None:
		context.__aenter__ = AsyncMock(side_effect=error)
	else:
		context.__aenter__ = AsyncMock(return_value=response)
	context.__aexit__ = AsyncMock(return_value=False)
	return context


class FakeSession:
	"""Replays queued responses and records every request."""

	def __init__(self, responses: List[Tuple[int, Any]] = None):
		self._responses = list(responses or [])
		self.calls: List[Tuple[str, str, dict]] = []
		self.error: Optional[BaseException] = None
		self.close = AsyncMock()

	def queue(self, status: int, body: Any = None) -> None:
		self._responses.append((status, body))

	def request(self, method: str, url: str, **kwargs) -> MagicMock:
		self.calls.append((method, url, kwargs))
		if self.error is not None:
			return _request_context(error=self.error)
		status, body = self._responses.pop(0)
		return _request_context(mock_response(status, body))


@pytest.fixture
def session():
	return FakeSession()


@pytest.fixture
def client(session):
	transport = TransportContext.backend(API_URL, session=session, token_provider=StaticTokenProvider("secret"))
	return ActiveServiceClient(transport)

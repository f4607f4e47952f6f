"""Configuration loading and validation."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import aiohttp
import voluptuous as vol
from dotenv import load_dotenv

from .auth import StaticTokenProvider, TokenProvider
from .const import (
	CONF_API_URL,
	CONF_MODE,
	CONF_TIMEOUT,
	CONF_TOKEN,
	DEFAULT_MODE,
	DEFAULT_TIMEOUT,
	ENV_API_MODE,
	ENV_API_TIMEOUT,
	ENV_API_TOKEN,
	ENV_API_URL,
	MODE_BACKEND,
	MODE_PROXY,
)
from .exceptions import OGSConfigError
from .transport import TransportContext

_LOGGER = logging.getLogger(__name__)


def _http_url(value: Any) -> str:
	if not isinstance(value, str) or not value.startswith(("http://", "https://")):
		raise vol.Invalid("expected an http(s) URL")
	return value.rstrip("/")


CONFIG_SCHEMA = vol.Schema(
	{
		vol.Required(CONF_API_URL): _http_url,
		vol.Optional(CONF_MODE, default=DEFAULT_MODE): vol.In([MODE_BACKEND, MODE_PROXY]),
		vol.Optional(CONF_TOKEN): vol.Any(None, str),
		vol.Optional(CONF_TIMEOUT, default=DEFAULT_TIMEOUT): vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False)),
	}
)


def load_config(data: Mapping[str, Any]) -> Dict[str, Any]:
	"""Validate a configuration mapping.

	Raises:
		OGSConfigError: A key is missing or has an invalid value
	"""
	try:
		return CONFIG_SCHEMA(dict(data))
	except vol.Invalid as e:
		raise OGSConfigError(f"Invalid configuration: {e}") from e


def load_config_from_env(env_file: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
	"""Build configuration from environment variables, reading a .env file first.

	Variables already set in the environment win over the .env file.
	"""
	if env_file is not None:
		load_dotenv(env_file)
	else:
		load_dotenv()

	data: Dict[str, Any] = {}
	mapping = (
		(ENV_API_URL, CONF_API_URL),
		(ENV_API_MODE, CONF_MODE),
		(ENV_API_TOKEN, CONF_TOKEN),
		(ENV_API_TIMEOUT, CONF_TIMEOUT),
	)
	for env_key, conf_key in mapping:
		value = os.environ.get(env_key)
		if value:
			data[conf_key] = value

	if CONF_API_URL not in data:
		raise OGSConfigError(f"{ENV_API_URL} is not set")

	_LOGGER.debug(f"Loaded configuration from environment (mode={data.get(CONF_MODE, DEFAULT_MODE)})")
	return load_config(data)


def create_transport(
	config: Mapping[str, Any],
	session: Optional[aiohttp.ClientSession] = None,
	token_provider: Optional[TokenProvider] = None,
) -> TransportContext:
	"""Create the transport described by a validated configuration.

	Args:
		config: Output of load_config or load_config_from_env
		session: Optional aiohttp session to share
		token_provider: Overrides the static token from the configuration
	"""
	provider = token_provider or StaticTokenProvider(config.get(CONF_TOKEN))
	return TransportContext(
		config[CONF_API_URL],
		mode=config.get(CONF_MODE, DEFAULT_MODE),
		session=session,
		token_provider=provider,
		timeout=config.get(CONF_TIMEOUT, DEFAULT_TIMEOUT),
	)

"""Custom exceptions for the OGS presence library."""

from typing import Optional


class OGSPresenceError(Exception):
	"""Base exception for OGS presence errors."""
	pass


class OGSAPIError(OGSPresenceError):
	"""API request failed with a non-2xx status."""

	retryable = False

	def __init__(self, message: str, status: Optional[int] = None, operation: Optional[str] = None):
		super().__init__(message)
		self.status = status
		self.operation = operation


class OGSAuthError(OGSAPIError):
	"""Request was rejected as unauthenticated or forbidden."""
	pass


class OGSClaimError(OGSAPIError):
	"""Claiming a group failed; somebody else may have been faster."""

	retryable = True


class OGSConnectionError(OGSPresenceError):
	"""Connection to the backend failed."""
	pass


class OGSDataError(OGSPresenceError):
	"""Response body could not be decoded."""
	pass


class OGSConfigError(OGSPresenceError):
	"""Configuration is missing or invalid."""
	pass

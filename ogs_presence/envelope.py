"""Normalisation of backend response envelopes.

The same logical list may arrive as a bare array, as ``{"data": [...]}`` or
paginated as ``{"data": {"data": [...], "pagination": {...}}}``. The shape is
classified once here; callers only ever see a flat list.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from .const import METADATA_KEYS
from .models import Pagination

_LOGGER = logging.getLogger(__name__)


class EnvelopeShape(Enum):
	"""Outcome of shape detection."""
	ARRAY = "array"
	EMPTY = "empty"
	UNRECOGNIZED = "unrecognized"


@dataclass
class Envelope:
	"""A classified response body."""
	shape: EnvelopeShape
	items: List[Any] = field(default_factory=list)
	pagination: Optional[Pagination] = None


def is_effectively_empty(payload: Any) -> bool:
	"""Check whether a payload carries nothing but metadata.

	None, empty lists and objects whose only keys are metadata plus empty or
	absent ``data``/``items`` count as empty.
	"""
	if payload is None:
		return True

	if isinstance(payload, list):
		return len(payload) == 0

	if isinstance(payload, dict):
		for key in ("data", "items"):
			if key in payload and not is_effectively_empty(payload[key]):
				return False
		remaining = [key for key in payload if key not in ("data", "items")]
		return all(key in METADATA_KEYS for key in remaining)

	return False


def _parse_pagination(value: Any) -> Optional[Pagination]:
	if not isinstance(value, dict):
		return None
	try:
		return Pagination(
			current_page=int(value.get("current_page", 1)),
			page_size=int(value.get("page_size", 0)),
			total_pages=int(value.get("total_pages", 1)),
			total_records=int(value.get("total_records", 0)),
		)
	except (TypeError, ValueError):
		_LOGGER.debug(f"Ignoring malformed pagination block: {value!r}")
		return None


def detect_envelope(payload: Any) -> Envelope:
	"""Classify a list response into one of the EnvelopeShape variants."""
	if isinstance(payload, list):
		return Envelope(EnvelopeShape.ARRAY, list(payload))

	if isinstance(payload, dict):
		data = payload.get("data")
		if isinstance(data, list):
			return Envelope(EnvelopeShape.ARRAY, list(data), _parse_pagination(payload.get("pagination")))
		if isinstance(data, dict) and isinstance(data.get("data"), list):
			pagination = _parse_pagination(data.get("pagination")) or _parse_pagination(payload.get("pagination"))
			return Envelope(EnvelopeShape.ARRAY, list(data["data"]), pagination)

	if is_effectively_empty(payload):
		return Envelope(EnvelopeShape.EMPTY)

	return Envelope(EnvelopeShape.UNRECOGNIZED)


def extract_list(payload: Any, operation: str = "request") -> List[Any]:
	"""Return the flat list carried by any accepted envelope shape.

	Unrecognised shapes yield an empty list and a warning instead of an error.
	"""
	envelope = detect_envelope(payload)
	if envelope.shape is EnvelopeShape.UNRECOGNIZED:
		keys = list(payload.keys()) if isinstance(payload, dict) else type(payload).__name__
		_LOGGER.warning(f"{operation}: unexpected response shape ({keys}), treating as empty")
	return envelope.items


def extract_item(payload: Any) -> Any:
	"""Return the single entity of an envelope, or None when there is none."""
	if isinstance(payload, dict) and "data" in payload:
		return payload["data"]
	return payload

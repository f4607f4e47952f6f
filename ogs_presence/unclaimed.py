"""Reconciliation of unclaimed-group payloads.

The unclaimed endpoint has drifted between several wrapper layouts. Groups
are searched for by unwrapping ``data`` first and ``items`` second, at any
depth. A payload with no list anywhere is either legitimately empty (only
metadata) or malformed; only the latter is logged.
"""

import logging
from typing import Any, Dict, List, Optional

from .envelope import is_effectively_empty

_LOGGER = logging.getLogger(__name__)

_WRAPPER_KEYS = ("data", "items")


def _extract_group_array(payload: Any) -> Optional[List[Dict[str, Any]]]:
	if isinstance(payload, list):
		return payload

	if isinstance(payload, dict):
		for key in _WRAPPER_KEYS:
			if key in payload:
				found = _extract_group_array(payload[key])
				if found is not None:
					return found

	return None


def parse_unclaimed_groups_payload(payload: Any) -> List[Dict[str, Any]]:
	"""Extract raw unclaimed groups from any known envelope layout.

	Args:
		payload: Decoded JSON body of the unclaimed groups endpoint

	Returns:
		List of raw backend group dicts, empty when none could be found
	"""
	groups = _extract_group_array(payload)
	if groups is not None:
		return groups

	if not is_effectively_empty(payload):
		_LOGGER.warning(f"Unexpected unclaimed groups response shape: {payload!r}")

	return []

"""
Configuration parser for decrypted flag payloads.

Two payload formats:
- STRUCTURED: a JSON object, {"flag-name": "rule", ...}
- FLAT_PAIRS: "flag-name=rule;other=rule", one record per flag. Names and
  rules are percent-decoded; "+" is kept literally so "rollout=+50" reads the
  same in both formats.
"""

import json
import logging
from enum import Enum
from typing import Dict
from urllib.parse import unquote

from ghostflags.core.exceptions import ParseError

logger = logging.getLogger(__name__)


class PayloadFormat(str, Enum):
	STRUCTURED = 'structured'
	FLAT_PAIRS = 'flat_pairs'


def parse_payload(plaintext: bytes, fmt: PayloadFormat) -> Dict[str, str]:
	"""
	Turn decrypted plaintext into a flag name -> raw rule mapping.

	Raises:
	    ParseError: undecodable or structurally invalid payload
	"""
	try:
		text = plaintext.decode('utf-8')
	except UnicodeDecodeError as e:
		raise ParseError(f'Payload is not valid UTF-8: {e}', payload_format=fmt.value) from e

	if fmt is PayloadFormat.STRUCTURED:
		return _parse_structured(text)
	return _parse_flat_pairs(text)


def _parse_structured(text: str) -> Dict[str, str]:
	try:
		parsed = json.loads(text)
	except json.JSONDecodeError as e:
		raise ParseError(f'Payload is not valid JSON: {e}', payload_format=PayloadFormat.STRUCTURED.value) from e

	if not isinstance(parsed, dict):
		raise ParseError(
			f'Payload must be a JSON object, got {type(parsed).__name__}',
			payload_format=PayloadFormat.STRUCTURED.value,
		)

	for name, rule in parsed.items():
		if not name:
			raise ParseError('Flag names must be non-empty', payload_format=PayloadFormat.STRUCTURED.value)
		if not isinstance(rule, str):
			raise ParseError(
				f'Rule for {name!r} must be a string, got {type(rule).__name__}',
				payload_format=PayloadFormat.STRUCTURED.value,
			)
	return dict(parsed)


def _parse_flat_pairs(text: str) -> Dict[str, str]:
	if not text.strip():
		raise ParseError('Payload is empty', payload_format=PayloadFormat.FLAT_PAIRS.value)

	rules: Dict[str, str] = {}
	for pair in text.split(';'):
		name, sep, rule = pair.partition('=')
		name = unquote(name.strip())
		if not sep or not name:
			if pair.strip():
				logger.debug('Skipping malformed flag pair')
			continue
		# First occurrence wins
		rules.setdefault(name, unquote(rule.strip()))

	if not rules:
		raise ParseError('Payload contains no flag pairs', payload_format=PayloadFormat.FLAT_PAIRS.value)
	return rules

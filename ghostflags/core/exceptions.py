"""
Custom Exceptions for GhostFlags
Typed failure causes for the flag evaluation read path.

Every error raised while resolving a flag configuration is one of the four
subclasses below. The evaluator converts all of them into a disabled flag.
"""

from typing import Any, Dict, Optional


class GhostFlagsException(Exception):
	"""Base exception for all GhostFlags errors."""

	def __init__(self, message: str, code: str = 'INTERNAL_ERROR', details: Optional[Dict[str, Any]] = None):
		super().__init__(message)
		self.message = message
		self.code = code
		self.details = details or {}

	def to_dict(self) -> Dict[str, Any]:
		"""Convert exception to a loggable mapping."""
		return {'error': True, 'code': self.code, 'message': self.message, 'details': self.details}


class ConfigurationError(GhostFlagsException):
	"""Shared secret missing or malformed, or evaluator misconfigured."""

	def __init__(self, message: str, setting: Optional[str] = None):
		super().__init__(message=message, code='CONFIGURATION_ERROR', details={'setting': setting})


class TransportError(GhostFlagsException):
	"""TXT record lookup failed, timed out or returned nothing."""

	def __init__(self, fqdn: str, message: str):
		super().__init__(
			message=f'TXT lookup failed for {fqdn}: {message}',
			code='TRANSPORT_ERROR',
			details={'fqdn': fqdn},
		)


class CryptoError(GhostFlagsException):
	"""Envelope malformed or authentication tag mismatch."""

	def __init__(self, message: str):
		super().__init__(message=message, code='CRYPTO_ERROR')


class ParseError(GhostFlagsException):
	"""Decrypted payload has an unusable structure."""

	def __init__(self, message: str, payload_format: Optional[str] = None):
		super().__init__(message=message, code='PARSE_ERROR', details={'format': payload_format})

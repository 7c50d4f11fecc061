"""
Shared secret holder.

The key is validated once, at process start, and is immutable afterwards.
Its value is never rendered by repr/str.
"""

import re
from typing import TYPE_CHECKING

from ghostflags.core.exceptions import ConfigurationError

if TYPE_CHECKING:
	from ghostflags.core.config import Settings

KEY_SIZE = 32
_HEX_KEY_RE = re.compile(r'^[0-9a-fA-F]{64}$')


class SecretKey:
	__slots__ = ('_key',)

	def __init__(self, key: bytes):
		if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
			raise ConfigurationError(f'Secret key must be exactly {KEY_SIZE} bytes', setting='GHOSTFLAGS_SECRET')
		object.__setattr__(self, '_key', bytes(key))

	@classmethod
	def from_hex(cls, value: str) -> 'SecretKey':
		"""Build a key from its 64-character hexadecimal form."""
		if not isinstance(value, str) or not _HEX_KEY_RE.match(value.strip()):
			raise ConfigurationError(
				f'Secret key must be {KEY_SIZE * 2} hexadecimal characters', setting='GHOSTFLAGS_SECRET'
			)
		return cls(bytes.fromhex(value.strip()))

	def __setattr__(self, name, value):
		raise AttributeError('SecretKey is immutable')

	@property
	def raw(self) -> bytes:
		return self._key

	def __eq__(self, other) -> bool:
		if not isinstance(other, SecretKey):
			return NotImplemented
		return self._key == other._key

	def __hash__(self) -> int:
		return hash(self._key)

	def __repr__(self) -> str:
		return 'SecretKey(**********)'

	__str__ = __repr__


def load_secret_key(settings: 'Settings') -> SecretKey:
	"""
	Load and validate the shared secret from settings.

	Raises:
	    ConfigurationError: the secret is absent or malformed
	"""
	value = settings.get_secret()
	if not value:
		raise ConfigurationError('GHOSTFLAGS_SECRET is not set', setting='GHOSTFLAGS_SECRET')
	return SecretKey.from_hex(value)

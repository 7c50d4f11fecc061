"""
TXT record resolver.

Looks up a TXT record and joins every returned character-string, in the
order the resolver returned them, into one opaque string. Long values are
split by publishers at the 255-byte limit, so ordering matters.
"""

import logging
from typing import List, Optional, Protocol

import dns.asyncresolver
import dns.exception

from ghostflags.core.exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 3.0


class RecordResolver(Protocol):
	async def resolve(self, fqdn: str) -> str: ...


class TxtRecordResolver:
	"""
	Async TXT lookups via dnspython.

	Args:
	    timeout: Overall lifetime of one lookup in seconds
	    nameservers: Optional explicit nameserver addresses
	"""

	def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS, nameservers: Optional[List[str]] = None):
		self.timeout = timeout
		self.nameservers = list(nameservers or [])
		self._resolver: Optional[dns.asyncresolver.Resolver] = None

	def _get_resolver(self) -> dns.asyncresolver.Resolver:
		if self._resolver is None:
			resolver = dns.asyncresolver.Resolver()
			if self.nameservers:
				resolver.nameservers = self.nameservers
			self._resolver = resolver
		return self._resolver

	async def resolve(self, fqdn: str) -> str:
		"""
		Resolve fqdn and return the concatenated TXT value.

		Raises:
		    TransportError: lookup failure, timeout or empty record
		"""
		try:
			answer = await self._get_resolver().resolve(fqdn, 'TXT', lifetime=self.timeout)
		except dns.exception.Timeout as e:
			raise TransportError(fqdn, f'timed out after {self.timeout}s') from e
		except dns.exception.DNSException as e:
			raise TransportError(fqdn, f'{type(e).__name__}: {e}') from e
		except OSError as e:
			raise TransportError(fqdn, str(e)) from e

		fragments = [fragment for rdata in answer for fragment in rdata.strings]
		return join_fragments(fqdn, fragments)


def join_fragments(fqdn: str, fragments: List) -> str:
	"""Concatenate TXT fragments in received order; empty is an error."""
	value = ''.join(
		fragment.decode('utf-8', errors='replace') if isinstance(fragment, bytes) else fragment
		for fragment in fragments
	)
	if not value:
		raise TransportError(fqdn, 'empty TXT record')
	logger.debug(f'Resolved {fqdn}: {len(fragments)} fragment(s), {len(value)} chars')
	return value

"""
Feature flags served from encrypted DNS TXT records.

Read path per evaluation:
    cache lookup -> (miss) resolve TXT -> decrypt -> parse -> cache store
    -> rule lookup -> (rollout) bucket decision

Supports:
- off / on
- percentage rollout keyed by a user identifier
- negative caching of failures

Any failure resolves to "disabled". Public calls never raise.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Hashable, Optional

from ghostflags.core.cache import ScopedCache
from ghostflags.core.config import Settings
from ghostflags.core.exceptions import ConfigurationError, GhostFlagsException
from ghostflags.core.rules import Rule, RuleKind, interpret_rule, rollout_bucket, rule_allows
from ghostflags.core.secret_key import SecretKey, load_secret_key
from ghostflags.services.config_parser import PayloadFormat, parse_payload
from ghostflags.services.crypto_service import decrypt
from ghostflags.services.dns_resolver import RecordResolver, TxtRecordResolver

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 60.0
FAILURE_CACHE_TTL_SECONDS = 10.0


class DeploymentMode(str, Enum):
	SINGLE_RECORD = 'single_record'
	PER_FLAG = 'per_flag'


@dataclass(frozen=True)
class ResolvedConfig:
	"""Interpreted rules for one scope, or the failure that replaced them."""

	rules: Dict[str, Rule] = field(default_factory=dict)
	error: Optional[GhostFlagsException] = None

	@property
	def failed(self) -> bool:
		return self.error is not None

	@classmethod
	def failure(cls, error: GhostFlagsException) -> 'ResolvedConfig':
		return cls(rules={}, error=error)


@dataclass(frozen=True)
class EvaluationResult:
	flag_name: str
	enabled: bool
	rule: Rule
	source: str
	error: Optional[GhostFlagsException] = None
	bucket: Optional[int] = None


class FlagEvaluator:
	"""
	Evaluates flags against an encrypted configuration published in DNS.

	In SINGLE_RECORD mode the whole configuration lives in one TXT record at
	base_domain and is cached per base_domain. In PER_FLAG mode each flag has
	its own record at "<flag>.<base_domain>", cached per (flag, base_domain).
	"""

	def __init__(
		self,
		secret: Optional[SecretKey],
		resolver: Optional[RecordResolver] = None,
		mode: DeploymentMode = DeploymentMode.SINGLE_RECORD,
		payload_format: Optional[PayloadFormat] = None,
		success_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
		failure_ttl: float = FAILURE_CACHE_TTL_SECONDS,
		cache: Optional[ScopedCache[ResolvedConfig]] = None,
		on_error: Optional[Callable[[GhostFlagsException], None]] = None,
	):
		if success_ttl <= 0 or failure_ttl <= 0:
			raise ConfigurationError('Cache TTLs must be positive')
		if failure_ttl > success_ttl:
			raise ConfigurationError('Failure TTL must not exceed success TTL', setting='GHOSTFLAGS_FAILURE_TTL')

		self.secret = secret
		self.resolver = resolver or TxtRecordResolver()
		self.mode = DeploymentMode(mode)
		if payload_format is None:
			payload_format = (
				PayloadFormat.STRUCTURED if self.mode is DeploymentMode.SINGLE_RECORD else PayloadFormat.FLAT_PAIRS
			)
		self.payload_format = PayloadFormat(payload_format)
		self.success_ttl = success_ttl
		self.failure_ttl = failure_ttl
		self.cache: ScopedCache[ResolvedConfig] = cache if cache is not None else ScopedCache()
		self.on_error = on_error

	@classmethod
	def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> 'FlagEvaluator':
		"""Build an evaluator from process settings. A bad secret fails closed."""
		settings = settings or Settings()
		try:
			secret = load_secret_key(settings)
		except ConfigurationError as e:
			logger.error(f'GhostFlags secret unavailable, all flags will evaluate off: {e.message}')
			secret = None

		kwargs.setdefault(
			'resolver', TxtRecordResolver(timeout=settings.dns_timeout, nameservers=settings.get_nameservers())
		)
		kwargs.setdefault('mode', DeploymentMode(settings.mode))
		kwargs.setdefault('success_ttl', settings.cache_ttl)
		kwargs.setdefault('failure_ttl', settings.failure_ttl)
		return cls(secret, **kwargs)

	# ============================================
	# Record naming
	# ============================================

	def record_name(self, flag_name: str, base_domain: str) -> str:
		if self.mode is DeploymentMode.PER_FLAG:
			return f'{flag_name}.{base_domain}'
		return base_domain

	def scope_key(self, flag_name: str, base_domain: str) -> Hashable:
		if self.mode is DeploymentMode.PER_FLAG:
			return (flag_name, base_domain)
		return base_domain

	# ============================================
	# Resolution
	# ============================================

	async def _load(self, fqdn: str) -> ResolvedConfig:
		if self.secret is None:
			raise ConfigurationError('GHOSTFLAGS_SECRET is not set', setting='GHOSTFLAGS_SECRET')

		envelope = await self.resolver.resolve(fqdn)
		plaintext = decrypt(envelope, self.secret)
		payload = parse_payload(plaintext, self.payload_format)
		return ResolvedConfig(rules={name: interpret_rule(raw) for name, raw in payload.items()})

	async def _refresh(self, key: Hashable, fqdn: str) -> ResolvedConfig:
		try:
			config = await self._load(fqdn)
		except GhostFlagsException as e:
			self._report(fqdn, e)
			config = ResolvedConfig.failure(e)
		except Exception as e:
			logger.exception(f'Unexpected error loading flags from {fqdn}')
			config = ResolvedConfig.failure(GhostFlagsException(f'Unexpected {type(e).__name__}: {e}'))

		ttl = self.failure_ttl if config.failed else self.success_ttl
		self.cache.put(key, config, ttl)
		return config

	def _report(self, fqdn: str, error: GhostFlagsException) -> None:
		logger.warning(f'Flags from {fqdn} unavailable [{error.code}]: {error.message}')
		if self.on_error is None:
			return
		try:
			self.on_error(error)
		except Exception as hook_error:
			logger.error(f'Flag error hook failed: {hook_error}')

	# ============================================
	# Evaluation
	# ============================================

	async def evaluate(self, flag_name: str, base_domain: str, user_id: Optional[str] = None) -> EvaluationResult:
		"""Evaluate a flag and report how the answer was reached."""
		key = self.scope_key(flag_name, base_domain)

		config = self.cache.get(key)
		if config is not None:
			source = 'cache'
		else:
			config = await self._refresh(key, self.record_name(flag_name, base_domain))
			source = 'failure' if config.failed else 'resolved'

		rule = config.rules.get(flag_name, Rule.off())
		bucket = None
		if rule.kind is RuleKind.ROLLOUT and rule.percentage < 100 and user_id:
			bucket = rollout_bucket(flag_name, user_id)
			enabled = bucket <= rule.percentage
		else:
			enabled = rule_allows(rule, flag_name, user_id)

		return EvaluationResult(
			flag_name=flag_name,
			enabled=enabled,
			rule=rule,
			source=source,
			error=config.error,
			bucket=bucket,
		)

	async def is_enabled(self, flag_name: str, base_domain: str, user_id: Optional[str] = None) -> bool:
		"""True only if the flag is on (or the user falls inside its rollout)."""
		try:
			result = await self.evaluate(flag_name, base_domain, user_id)
		except Exception:
			logger.exception(f'Flag evaluation failed for {flag_name!r}')
			return False
		return result.enabled

	def invalidate(self, base_domain: str, flag_name: Optional[str] = None) -> None:
		"""Drop the cached configuration for a scope."""
		if self.mode is DeploymentMode.PER_FLAG:
			if flag_name is None:
				raise ValueError('flag_name is required to invalidate a per-flag scope')
			self.cache.invalidate((flag_name, base_domain))
		else:
			self.cache.invalidate(base_domain)

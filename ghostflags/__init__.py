"""
GhostFlags - feature flags served from encrypted DNS TXT records.

Usage:
    from ghostflags import FlagEvaluator

    evaluator = FlagEvaluator.from_settings()
    if await evaluator.is_enabled("new-header", "flags.example.com", user_id):
        ...
"""

from ghostflags.core.cache import CacheEntry, ScopedCache
from ghostflags.core.config import Settings
from ghostflags.core.exceptions import (
	ConfigurationError,
	CryptoError,
	GhostFlagsException,
	ParseError,
	TransportError,
)
from ghostflags.core.feature_flags import DeploymentMode, EvaluationResult, FlagEvaluator, ResolvedConfig
from ghostflags.core.rules import Rule, RuleKind, interpret_rule, rollout_bucket
from ghostflags.core.secret_key import SecretKey, load_secret_key
from ghostflags.services.config_parser import PayloadFormat, parse_payload
from ghostflags.services.crypto_service import decrypt, encrypt
from ghostflags.services.dns_resolver import RecordResolver, TxtRecordResolver

__version__ = '0.1.0'

__all__ = [
	'CacheEntry',
	'ConfigurationError',
	'CryptoError',
	'DeploymentMode',
	'EvaluationResult',
	'FlagEvaluator',
	'GhostFlagsException',
	'ParseError',
	'PayloadFormat',
	'RecordResolver',
	'ResolvedConfig',
	'Rule',
	'RuleKind',
	'ScopedCache',
	'SecretKey',
	'Settings',
	'TransportError',
	'TxtRecordResolver',
	'decrypt',
	'encrypt',
	'interpret_rule',
	'load_secret_key',
	'parse_payload',
	'rollout_bucket',
]

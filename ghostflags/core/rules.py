"""
Flag rules and deterministic rollout bucketing.

A raw rule string from the decrypted configuration becomes one of:
- Off
- On
- Rollout(percentage), 0 <= percentage <= 100

Unrecognized input interprets as Off.
"""

import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

_ROLLOUT_PREFIX = 'rollout='
_INTEGER_RE = re.compile(r'[+-]?[0-9]+')


class RuleKind(Enum):
	OFF = 'off'
	ON = 'on'
	ROLLOUT = 'rollout'


@dataclass(frozen=True)
class Rule:
	kind: RuleKind = RuleKind.OFF
	percentage: int = 0

	@classmethod
	def off(cls) -> 'Rule':
		return cls(RuleKind.OFF)

	@classmethod
	def on(cls) -> 'Rule':
		return cls(RuleKind.ON)

	@classmethod
	def rollout(cls, percentage: int) -> 'Rule':
		return cls(RuleKind.ROLLOUT, max(0, min(100, int(percentage))))

	def __str__(self) -> str:
		if self.kind is RuleKind.ROLLOUT:
			return f'{_ROLLOUT_PREFIX}{self.percentage}'
		return self.kind.value


def interpret_rule(raw: object) -> Rule:
	"""Convert a raw rule string into a Rule. Never raises."""
	if not isinstance(raw, str):
		return Rule.off()
	if raw == 'on':
		return Rule.on()
	if raw.startswith(_ROLLOUT_PREFIX):
		value = raw[len(_ROLLOUT_PREFIX) :]
		if not _INTEGER_RE.fullmatch(value):
			return Rule.off()
		return Rule.rollout(int(value))
	return Rule.off()


def rollout_bucket(flag_name: str, user_id: str) -> int:
	"""
	Map (flag_name, user_id) to a stable bucket in [1, 100].

	SHA-256 over flag_name immediately followed by user_id, first four digest
	bytes read as an unsigned big-endian integer. There is no separator, so
	('ab', 'c') and ('a', 'bc') share a bucket; existing deployments depend on
	this exact input.
	"""
	digest = hashlib.sha256(f'{flag_name}{user_id}'.encode('utf-8')).digest()
	value = int.from_bytes(digest[:4], 'big')
	return (value % 100) + 1


def rule_allows(rule: Rule, flag_name: str, user_id: Optional[str] = None) -> bool:
	if rule.kind is RuleKind.ON:
		return True
	if rule.kind is not RuleKind.ROLLOUT:
		return False
	if rule.percentage >= 100:
		return True
	if not user_id:
		return False
	return rollout_bucket(flag_name, user_id) <= rule.percentage

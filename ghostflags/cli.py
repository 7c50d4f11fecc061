"""
GhostFlags - Command Line Interface
Encrypts flag rules and configurations into TXT record values, and checks
flags against live DNS.
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from Crypto.Random import get_random_bytes
from dotenv import load_dotenv
from pydantic import ValidationError as SettingsValidationError

from ghostflags.core.config import Settings
from ghostflags.core.exceptions import GhostFlagsException
from ghostflags.core.feature_flags import DeploymentMode, FlagEvaluator
from ghostflags.core.logging_config import configure_logging
from ghostflags.core.rules import Rule
from ghostflags.core.secret_key import KEY_SIZE, load_secret_key
from ghostflags.services.config_parser import PayloadFormat, parse_payload
from ghostflags.services.crypto_service import encrypt


def create_parser():
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="ghostflags",
        description="GhostFlags - encrypted feature flags over DNS TXT records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ghostflags generate-secret
  ghostflags encrypt-config flags.json
  ghostflags encrypt-flag new-header on
  ghostflags encrypt-flag beta-checkout rollout --percentage 25
  ghostflags check beta-checkout flags.example.com --user-id user-42

The shared secret is read from GHOSTFLAGS_SECRET (environment, .env or .env.local).
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============================================
    # GENERATE-SECRET
    # ============================================
    subparsers.add_parser(
        "generate-secret",
        help="Print a new random 64-character hex secret"
    )

    # ============================================
    # ENCRYPT-CONFIG - whole configuration (single record)
    # ============================================
    config_parser = subparsers.add_parser(
        "encrypt-config",
        help="Encrypt a JSON flag configuration file"
    )
    config_parser.add_argument("path", help="Path to a JSON object of flag -> rule")

    # ============================================
    # ENCRYPT-FLAG - one flag (per-flag records)
    # ============================================
    flag_parser = subparsers.add_parser(
        "encrypt-flag",
        help="Encrypt a single flag rule as a name=rule pair"
    )
    flag_parser.add_argument("name", help="Flag name")
    flag_parser.add_argument("state", choices=["on", "off", "rollout"], help="Flag state")
    flag_parser.add_argument(
        "--percentage", type=int, default=0,
        help="Rollout percentage, clamped to 0-100 (default: 0)"
    )

    # ============================================
    # CHECK - evaluate against live DNS
    # ============================================
    check_parser = subparsers.add_parser(
        "check",
        help="Evaluate a flag against its published TXT record"
    )
    check_parser.add_argument("flag", help="Flag name")
    check_parser.add_argument("base_domain", help="Base domain holding the flag record(s)")
    check_parser.add_argument("--user-id", default=None, help="User identifier for rollouts")
    check_parser.add_argument(
        "--per-flag", action="store_true",
        help="Look up <flag>.<base_domain> instead of one configuration record"
    )

    return parser


def build_flag_rule(state: str, percentage: int = 0) -> str:
    if state == "on":
        return str(Rule.on())
    if state == "rollout":
        return str(Rule.rollout(percentage))
    return str(Rule.off())


def run_generate_secret(args, settings: Settings) -> int:
    print(get_random_bytes(KEY_SIZE).hex())
    return 0


def run_encrypt_config(args, settings: Settings) -> int:
    path = Path(args.path).resolve()
    try:
        content = path.read_bytes()
    except OSError as e:
        print(f"Error: Could not read {args.path}: {e}", file=sys.stderr)
        return 1

    # Refuse to publish anything the evaluator could not parse
    parse_payload(content, PayloadFormat.STRUCTURED)

    key = load_secret_key(settings)
    print(encrypt(content, key))
    return 0


def run_encrypt_flag(args, settings: Settings) -> int:
    key = load_secret_key(settings)
    rule = build_flag_rule(args.state, args.percentage)
    # The flat-pair reader percent-decodes both sides of the first "="
    pair = f"{quote(args.name, safe='')}={quote(rule, safe='=')}"
    print(encrypt(pair, key))
    return 0


async def run_check(args, settings: Settings) -> int:
    mode = DeploymentMode.PER_FLAG if args.per_flag else DeploymentMode(settings.mode)
    evaluator = FlagEvaluator.from_settings(settings, mode=mode)
    result = await evaluator.evaluate(args.flag, args.base_domain, args.user_id)

    print(json.dumps({
        "flag": result.flag_name,
        "enabled": result.enabled,
        "rule": str(result.rule),
        "bucket": result.bucket,
        "error": result.error.to_dict() if result.error else None,
    }, indent=2))
    return 0 if result.error is None else 2


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    load_dotenv(".env.local")

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = Settings()
    except SettingsValidationError as e:
        print(f"Error: invalid GhostFlags settings:\n{e}", file=sys.stderr)
        return 1

    configure_logging(settings)

    try:
        if args.command == "generate-secret":
            return run_generate_secret(args, settings)
        elif args.command == "encrypt-config":
            return run_encrypt_config(args, settings)
        elif args.command == "encrypt-flag":
            return run_encrypt_flag(args, settings)
        elif args.command == "check":
            return asyncio.run(run_check(args, settings))
        parser.print_help()
        return 0

    except GhostFlagsException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nStopped by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())

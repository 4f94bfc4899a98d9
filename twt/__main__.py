"""
Command line interface for generating and verifying tokens.
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config import LOG_LEVELS, get_settings
from .crypto_utils import generate_salt, hash_token
from .errors import TWTError
from .logging import configure_logging
from .tokens import generate_twt, verify_twt


def _json_object(value: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise argparse.ArgumentTypeError("expected a JSON object")
    return parsed


def _parse_args(argv: Optional[List[str]], default_secret: Optional[str], default_level: str) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="twt", description="Generate and verify encrypted time-bounded tokens.")
    parser.add_argument("--log-level", type=str.lower, choices=LOG_LEVELS, default=default_level, help="Log level for diagnostics written to stderr")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("salt", help="Print a new encoded secret")

    generate = commands.add_parser("generate", help="Generate a token")
    generate.add_argument("--secret", default=default_secret, help="Encoded secret (default: $TWT_ENCODED_SECRET)")
    generate.add_argument("--claims", type=_json_object, default={}, help="Claims as a JSON object")
    generate.add_argument("--valid-at", type=int, default=None, help="Start of validity, seconds since the epoch")
    generate.add_argument("--expires-at", type=int, default=None, help="End of validity, seconds since the epoch")

    verify = commands.add_parser("verify", help="Verify a token and print its claims")
    verify.add_argument("token", help="Token to verify")
    verify.add_argument("--secret", default=default_secret, help="Encoded secret (default: $TWT_ENCODED_SECRET)")
    verify.add_argument("--key-map", type=_json_object, default=None, help="JSON object renaming claim keys")
    verify.add_argument("--drift", type=float, default=None, help="Allowable clock drift in seconds")

    hash_cmd = commands.add_parser("hash", help="Hash a token with a salt")
    hash_cmd.add_argument("token", help="Token to hash")
    hash_cmd.add_argument("--salt", required=True, help="Salt prepended to the token")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"[twt] invalid settings: {exc}", file=sys.stderr)
        return 1

    args = _parse_args(argv, settings.encoded_secret, settings.log_level)
    configure_logging(args.log_level)

    try:
        if args.command == "salt":
            print(generate_salt())
        elif args.command == "generate":
            options = {"encoded_secret": args.secret, "valid_at": args.valid_at, "expires_at": args.expires_at}
            print(generate_twt(args.claims, options, settings=settings))
        elif args.command == "verify":
            options = {
                "encoded_secret": args.secret,
                "key_map": args.key_map,
                "allowable_clock_drift_seconds": args.drift,
            }
            print(json.dumps(verify_twt(args.token, options, settings=settings)))
        elif args.command == "hash":
            print(hash_token(args.token, args.salt))
    except TWTError as exc:
        print(f"[twt] {exc.code.value}: {exc.message}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"[twt] failed: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

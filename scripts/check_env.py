"""Verify that the scheduler's configuration and stored credential are usable.

Commands:

* ``check`` loads ``AppSettings`` from the given ``.env`` file and reports
  missing or malformed values.
* ``record`` / ``verify`` store and compare a checksum of the ``.env`` file so
  unexpected edits are noticed before the service restarts.
* ``tokens`` inspects the persisted Google token file and tells whether the
  service can still refresh it or needs a manual re-authorization.

Example usages::

    python -m scripts.check_env record --env-file /opt/scheduler/.env \
        --hash-file /opt/scheduler/.env.sha256
    python -m scripts.check_env verify --env-file /opt/scheduler/.env \
        --hash-file /opt/scheduler/.env.sha256
    python -m scripts.check_env tokens --env-file /opt/scheduler/.env
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from social_scheduler.clients.token_store import TokenFileStore, TokenStoreError
from social_scheduler.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_REAUTH_REQUIRED = 4
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"Expected checksum file {hash_file} is missing. "
            "Re-run with the 'record' command to establish a baseline.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _compute_hash(env_file)
    if expected == actual:
        print("Environment checksum OK.")
        return EXIT_OK

    print(
        "Environment checksum mismatch!\n"
        f"  expected: {expected}\n"
        f"  actual:   {actual}",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _inspect_tokens(token_file: Path) -> int:
    """Report whether the stored credential can be used or refreshed."""
    try:
        record = TokenFileStore(token_file).load()
    except TokenStoreError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if record is None:
        print(f"No token file at {token_file}; visit /auth/google to authorize.", file=sys.stderr)
        return EXIT_REAUTH_REQUIRED

    expires_at = record.expires_at.isoformat() if record.expires_at else "unknown"
    if not record.is_expired():
        print(f"Access token valid until {expires_at}.")
        return EXIT_OK
    if record.refresh_token:
        print(f"Access token expired at {expires_at}; it will be refreshed on next use.")
        return EXIT_OK

    print(
        f"Access token expired at {expires_at} and no refresh token is stored. "
        "Please re-authenticate.",
        file=sys.stderr,
    )
    return EXIT_REAUTH_REQUIRED


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate settings, detect .env drift and inspect stored tokens."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_env_file(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    for name, help_text in (
        ("record", "Validate settings and store the checksum baseline."),
        ("verify", "Validate settings and compare the checksum with the baseline."),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        add_env_file(subparser)
        subparser.add_argument("--hash-file", required=True, type=Path)

    add_env_file(subparsers.add_parser("check", help="Validate settings only."))

    tokens_parser = subparsers.add_parser(
        "tokens", help="Validate settings and inspect the persisted token file."
    )
    add_env_file(tokens_parser)
    tokens_parser.add_argument(
        "--token-file",
        type=Path,
        default=None,
        help="Token file to inspect (default: GOOGLE_TOKEN_FILE from settings).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
        "check": lambda: EXIT_OK,
        "tokens": lambda: _inspect_tokens(
            getattr(args, "token_file", None) or settings.oauth.token_file
        ),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())

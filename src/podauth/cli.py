"""``podauth-generate``: produce auth data for integration tests.

Logs in to the POD provider with the test account, then writes the complete
auth data bundle the test harness injects before each run.

Examples:
    # Watch the browser
    podauth-generate

    # CI
    podauth-generate --headless

    # Custom paths
    podauth-generate --credentials my_creds.json --output my_auth.json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

from podauth.automator import PodAuthAutomator
from podauth.models.config import (
    DEFAULT_AUTH_DATA_PATH,
    DEFAULT_CREDENTIALS_PATH,
    DEFAULT_ISSUER_URL,
    DEFAULT_REDIRECT_PORT,
    ProviderConfig,
)
from podauth.models.credentials import CREDENTIALS_TEMPLATE, TestCredentials
from podauth.models.errors import CredentialsError
from podauth.storage.injector import write_auth_data_file

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="podauth-generate",
        description="Generate POD auth data for integration tests by automating "
        "the OAuth login in a browser.",
        epilog=__doc__.split("Examples:", 1)[1],
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run the browser in headless mode (default: visible)",
    )
    parser.add_argument(
        "--credentials",
        "-c",
        default=DEFAULT_CREDENTIALS_PATH,
        help=f"Path to test credentials JSON (default: {DEFAULT_CREDENTIALS_PATH})",
    )
    parser.add_argument(
        "--output",
        "-o",
        default=DEFAULT_AUTH_DATA_PATH,
        help=f"Path to save auth data (default: {DEFAULT_AUTH_DATA_PATH})",
    )
    parser.add_argument(
        "--issuer",
        default=DEFAULT_ISSUER_URL,
        help=f"POD issuer URL (default: {DEFAULT_ISSUER_URL})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_REDIRECT_PORT,
        help=f"OAuth redirect port (default: {DEFAULT_REDIRECT_PORT})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Timeout for each browser step in seconds (default: 30)",
    )
    parser.add_argument(
        "--discover-metadata",
        action="store_true",
        help="Fetch issuer metadata from the provider instead of deriving it",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


async def generate(args: argparse.Namespace) -> int:
    try:
        config = ProviderConfig(
            issuer_url=args.issuer,
            redirect_port=args.port,
            timeout=args.timeout,
            credentials_path=args.credentials,
            auth_data_path=args.output,
            discover_issuer_metadata=args.discover_metadata,
        )
    except ValidationError as e:
        print(f"\nInvalid configuration: {e}", file=sys.stderr)
        return 1

    print(f"Loading credentials from: {config.credentials_path}")
    try:
        credentials = TestCredentials.load(config.credentials_path)
    except CredentialsError as e:
        print(f"\nError: {e}", file=sys.stderr)
        print("\nMake sure you have a test_credentials.json file with format:")
        print(CREDENTIALS_TEMPLATE)
        return 1
    print(f"  Email: {credentials.email}")
    print(f"  WebID: {credentials.web_id}")

    print("\nAuthenticating with POD provider...")
    print(f"  Issuer: {config.issuer_url}")
    print(f"  Redirect port: {config.redirect_port}")
    print(f"  Headless: {args.headless}")

    result = await PodAuthAutomator().authenticate(
        credentials, config, headless=args.headless
    )
    if not result.success or result.complete_auth_data is None:
        print(f"\nAuthentication failed: {result.error}", file=sys.stderr)
        return 1

    if args.verbose:
        print("\nTokens:")
        print(result.format_tokens())

    print(f"\nSaving complete auth data to: {config.auth_data_path}")
    try:
        write_auth_data_file(config.auth_data_path, result.complete_auth_data)
    except OSError as e:
        print(f"\nFailed to save auth data: {e}", file=sys.stderr)
        return 1

    print("\n=== Success! ===")
    print(f"Auth data saved to: {config.auth_data_path}")
    print("\nYou can now run your integration tests.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=== Solid POD Auth Data Generator ===\n")
    return asyncio.run(generate(args))


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

"""
Command-line entry point for creating the Pantry Manager secrets

Run this BEFORE `cdk deploy`: it creates every secret the Amplify stack
references, then prints the ARNs to copy into src/pantry_deploy/config.py.

Exit codes:
    0   - Run completed (whatever the per-secret outcome) or aborted by the operator
    1   - Fatal Secrets Manager or credentials error, or a failed --check
    130 - Interrupted
"""
import sys
import argparse
import logging
from typing import List, Optional

from .exceptions import (
    AbortedByOperator,
    CredentialsMissing,
    FatalStoreError,
    PermissionDenied,
    SecretStoreError,
)
from .interactive_io import ConsoleIO
from .provisioner import SecretProvisioner
from .secret_catalog import SECRET_CATALOG
from .secrets_client import DEFAULT_REGION, SecretsManagerStore, describe_store

logger = logging.getLogger(__name__)

EPILOG = f"""
Examples:
  pantry-create-secrets
  pantry-create-secrets --region us-west-2
  pantry-create-secrets --check
  python scripts/create_secrets.py --region eu-west-1

Prerequisites:
  - AWS CLI configured with credentials
  - Permissions to create secrets in AWS Secrets Manager

This script MUST be run BEFORE deploying the CDK stack.
Default region: {DEFAULT_REGION}
"""

CREDENTIALS_HELP = [
    '',
    '🔐 AWS Credentials Issue:',
    '   Make sure you have AWS credentials configured:',
    '',
    '   Option 1: AWS CLI',
    '     Run: aws configure',
    '',
    '   Option 2: Environment Variables',
    '     Set: AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY',
    '',
    '   Option 3: AWS Profile',
    '     Set: AWS_PROFILE=your-profile-name',
    '',
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pantry-create-secrets',
        description="Pantry Manager - AWS Secrets Setup Script",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--region",
        default=DEFAULT_REGION,
        help=f"AWS region to create secrets in (default: {DEFAULT_REGION})"
    )
    parser.add_argument(
        "--endpoint-url",
        default=None,
        help="Custom Secrets Manager endpoint, e.g. LocalStack (default: AWS_ENDPOINT_URL)"
    )
    parser.add_argument(
        "--echo",
        action="store_true",
        help="Show secret values while typing them"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only verify Secrets Manager access in the region, then exit"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def print_fatal_error(message: str, cause: Optional[SecretStoreError] = None) -> None:
    print(f"\n❌ FATAL ERROR: {message}", file=sys.stderr)
    if isinstance(cause, PermissionDenied):
        for line in CREDENTIALS_HELP:
            print(line, file=sys.stderr)
    if isinstance(cause, CredentialsMissing):
        print("   No credentials were found in any of the locations above.", file=sys.stderr)


def main(argv: Optional[List[str]] = None, store=None, io=None) -> int:
    """
    Main CLI entrypoint

    Args:
        argv: Arguments (defaults to sys.argv[1:])
        store: Secret store override (defaults to Secrets Manager in --region)
        io: Operator IO override (defaults to the console)

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    logger.debug(f"Provisioning {len(SECRET_CATALOG)} secrets in {args.region}")

    if store is None:
        print(f"\n🔧 Using AWS Region: {args.region}\n")
        try:
            store = SecretsManagerStore(region=args.region, endpoint_url=args.endpoint_url)
        except SecretStoreError as e:
            print_fatal_error(f"Could not create Secrets Manager client: {e}", e)
            return 1

    if args.check:
        if store.health_check():
            print(f"✅ Secrets Manager is reachable in {describe_store(store)}")
            return 0
        print_fatal_error(f"Secrets Manager is not reachable in {describe_store(store)}")
        return 1

    if io is None:
        io = ConsoleIO(echo=args.echo)

    provisioner = SecretProvisioner(store, io, SECRET_CATALOG)
    try:
        provisioner.run()
    except AbortedByOperator:
        return 0
    except FatalStoreError as e:
        print_fatal_error(str(e), e.cause)
        return 1
    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted. Re-run to finish the remaining secrets.", file=sys.stderr)
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())

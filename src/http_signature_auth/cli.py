"""
Command-line interface for HTTP Signature authentication
Provides key generation, request signing and request verification
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from . import __version__
from .crypto import generate_private_key, private_key_to_pem, public_key_to_pem
from .exceptions import HttpSignatureError
from .signer import DEFAULT_ALGORITHM, HeaderSigner
from .strategy import HttpSignatureStrategy
from .types import AuthOutcome, SignatureRequest


def parse_header(value: str) -> Tuple[str, str]:
    """Parse a ``Name: value`` command-line header"""
    name, sep, header_value = value.partition(':')
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Header must look like 'Name: value', got {value!r}")
    return name.strip(), header_value.strip()


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='http-signature',
        description='Sign and verify HTTP requests with the Signature authentication scheme'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'http-signature-auth {__version__}'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_keygen_parser(subparsers)
    setup_sign_parser(subparsers)
    setup_verify_parser(subparsers)

    return parser


def setup_keygen_parser(subparsers):
    """Setup key generation subcommand."""
    keygen_parser = subparsers.add_parser('keygen', help='Generate a key pair')
    keygen_parser.add_argument(
        '--type',
        choices=['rsa', 'ec', 'ed25519'],
        default='rsa',
        help='Key type (default: rsa)'
    )
    keygen_parser.add_argument(
        '--bits',
        type=int,
        default=2048,
        help='RSA key size in bits (default: 2048)'
    )
    keygen_parser.add_argument('--password', help='Encrypt the private key with this passphrase')
    keygen_parser.add_argument('--public-only', action='store_true', help='Output only the public key')


def _add_request_arguments(command_parser):
    command_parser.add_argument('--method', default='GET', help='HTTP method (default: GET)')
    command_parser.add_argument('--path', default='/', help='Request path including query (default: /)')
    command_parser.add_argument(
        '--header', '-H',
        dest='request_headers',
        action='append',
        type=parse_header,
        default=[],
        help="Request header as 'Name: value' (repeatable)"
    )


def setup_sign_parser(subparsers):
    """Setup request signing subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Produce signed request headers')
    sign_parser.add_argument('--key-file', required=True, help='PEM private key file')
    sign_parser.add_argument('--key-id', required=True, help='Key identifier sent as keyId')
    sign_parser.add_argument('--password', help='Passphrase for an encrypted private key')
    sign_parser.add_argument('--algorithm', default=DEFAULT_ALGORITHM, help=f'Algorithm (default: {DEFAULT_ALGORITHM})')
    sign_parser.add_argument('--headers', help='Space-separated header names to sign (default: "(request-target) date")')
    sign_parser.add_argument('--body', help='Request body, used for the Digest header')
    _add_request_arguments(sign_parser)


def setup_verify_parser(subparsers):
    """Setup request verification subcommand."""
    verify_parser = subparsers.add_parser('verify', help='Verify a signed request')
    verify_parser.add_argument('--public-key-file', required=True, help='PEM public key or certificate file')
    verify_parser.add_argument('--realm', default=None, help='Realm reported in the challenge')
    verify_parser.add_argument(
        '--require-header',
        action='append',
        default=[],
        help='Additional header the signature must cover (repeatable)'
    )
    _add_request_arguments(verify_parser)


def handle_keygen_command(args) -> int:
    """Handle key generation command."""
    if args.type == 'rsa' and args.bits < 2048:
        print("Error: RSA keys must be at least 2048 bits", file=sys.stderr)
        return 1

    private_key = generate_private_key(args.type, key_size=args.bits)

    if not args.public_only:
        print(private_key_to_pem(private_key, args.password), end='')
    print(public_key_to_pem(private_key), end='')
    return 0


def handle_sign_command(args) -> int:
    """Handle request signing command."""
    headers = args.headers.split(' ') if args.headers else None
    signer = HeaderSigner(
        args.key_id,
        Path(args.key_file).read_bytes(),
        algorithm=args.algorithm,
        headers=headers,
        password=args.password
    )

    request_headers: Dict[str, str] = dict(args.request_headers)
    signed = signer.sign(args.method, args.path, request_headers, body=args.body)
    print(json.dumps(signed, indent=2))
    return 0


def handle_verify_command(args) -> int:
    """Handle request verification command."""
    public_key = Path(args.public_key_file).read_bytes()

    def lookup(key_id: str):
        return key_id, public_key

    options = {'headers': args.require_header}
    if args.realm:
        options['realm'] = args.realm
    strategy = HttpSignatureStrategy(lookup, **options)

    request = SignatureRequest(
        method=args.method,
        path=args.path,
        headers=dict(args.request_headers)
    )
    result = strategy.authenticate_sync(request)

    if result.outcome == AuthOutcome.SUCCESS:
        print(f"success: {result.user}")
        return 0

    if result.outcome == AuthOutcome.CHALLENGE:
        print(f"challenge: {result.challenge}")
    else:
        print(f"error: {result.error}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    try:
        if args.command == 'keygen':
            return handle_keygen_command(args)
        elif args.command == 'sign':
            return handle_sign_command(args)
        elif args.command == 'verify':
            return handle_verify_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except (HttpSignatureError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

"""
Command line front end.

    srsrewrite forward user@origin.example
    srsrewrite reverse SRS0=abcd=2W=origin.example=user@relay.example

Configuration comes from SRS_* environment variables; flags override it.
"""

import argparse
import logging
import sys

from .config import SRSConfig
from .engine import SRS
from .types import SRSError


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='srsrewrite',
        description='Sender Rewriting Scheme forward/reverse',
    )
    parser.add_argument('--secret', help='HMAC secret (default: $SRS_SECRET)')
    parser.add_argument('--domain', help='forwarding domain (default: $SRS_DOMAIN)')
    parser.add_argument('--hash-length', type=int, help='tag length (default 4)')
    parser.add_argument('--max-age', type=int, help='freshness window in days (default 21)')
    parser.add_argument('--separator', choices=['=', '+', '-'], help="first separator (default '=')")
    parser.add_argument('--verbose', '-v', action='store_true', help='Log rewrite decisions')

    parser.add_argument('action', choices=['forward', 'reverse'])
    parser.add_argument('addresses', nargs='+', metavar='ADDRESS')
    return parser


def main(argv=None, environ=None) -> int:
    """Run from the command line. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        config = SRSConfig.from_env(
            environ,
            secret=args.secret,
            domain=args.domain,
            hash_length=args.hash_length,
            max_age=args.max_age,
            separator=args.separator,
        )
    except ValueError as e:
        print(f"srsrewrite: configuration error: {e}", file=sys.stderr)
        return 2

    srs = SRS(config)
    rewrite = srs.forward if args.action == 'forward' else srs.reverse

    status = 0
    for address in args.addresses:
        try:
            print(rewrite(address))
        except SRSError as e:
            logger.debug("SRS: %s failed for %s (%s)", args.action, address, e.kind.name)
            print(f"srsrewrite: {address}: {e}", file=sys.stderr)
            status = 1
    return status


if __name__ == '__main__':
    sys.exit(main())

#!/usr/bin/env python3
"""
Upstox Registration Checker

This script shows which Upstox app registration each user identity resolves
to, using the same environment variables and lookup rules as the server.
Client secrets are never printed; only whether one is available.

Usage:
    python scripts/check_upstox_config.py 8885615779 8008752702

    # Also print a sample authorization URL per identity
    python scripts/check_upstox_config.py 8885615779 --url

    # List configured registration keys
    python scripts/check_upstox_config.py --list
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.server.config import settings
from src.upstox_oauth import (
    AuthorizationRedirector,
    CredentialResolver,
    StateTokenCodec,
    sanitize_key,
)

# Setup logging
logging.basicConfig(
    level=logging.WARNING,  # Quiet by default
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def describe_identity(
    resolver: CredentialResolver, identity: str, show_url: bool = False
) -> bool:
    """
    Print the registration resolved for one identity.

    Args:
        resolver: Credential resolver
        identity: User identity to check
        show_url: Whether to print a sample authorization URL

    Returns:
        True if a registration resolved, False otherwise
    """
    key = sanitize_key(identity)
    config = resolver.resolve(identity)

    print(f"Identity:     {identity}")
    print(f"Lookup key:   {key}")

    if config is None:
        print("Status:       ❌ NOT CONFIGURED")
        print()
        print("Set one of:")
        print(f"  {settings.credential_env_prefix}_CLIENT_ID_{key} and "
              f"{settings.credential_env_prefix}_REDIRECT_URL_{key}")
        print(f"  {settings.credential_env_prefix}_CLIENT_ID and "
              f"{settings.credential_env_prefix}_REDIRECT_URL (global)")
        print()
        return False

    source = "per-user" if key in resolver.tenant_keys() else "global fallback"
    has_secret = bool(resolver.effective_secret(config))

    print(f"Status:       ✅ {source}")
    print(f"Client ID:    {config.client_id}")
    print(f"Redirect URI: {config.redirect_uri}")
    print(f"Secret:       {'present' if has_secret else '⚠️  missing'}")

    if show_url:
        redirector = AuthorizationRedirector(
            resolver, StateTokenCodec(), authorization_url=settings.authorization_url
        )
        print(f"Sample URL:   {redirector.build_redirect(identity).location}")

    print()
    return True


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Check Upstox app registrations for user identities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("identities", nargs="*", help="User identities (phone numbers)")
    parser.add_argument(
        "--url", action="store_true", help="Print a sample authorization URL"
    )
    parser.add_argument(
        "--list", action="store_true", help="List configured registration keys"
    )

    args = parser.parse_args()

    resolver = CredentialResolver.from_env(prefix=settings.credential_env_prefix)

    print("=" * 70)
    print("UPSTOX REGISTRATIONS")
    print("=" * 70)
    print()

    if args.list or not args.identities:
        keys = resolver.tenant_keys()
        print(f"Per-user registrations: {', '.join(keys) if keys else 'none'}")
        print(f"Global fallback:        {'yes' if resolver.has_default else 'no'}")
        print()

    results = [describe_identity(resolver, i, args.url) for i in args.identities]
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())

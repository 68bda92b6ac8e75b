from __future__ import annotations

import argparse
import os

from .cli_parsers.general import add_general_subparsers
from .cli_parsers.stripe_ops import add_stripe_subparsers


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stripeconf",
        description="Manage local Stripe project credentials and products, prices, Connect accounts and webhooks.",
    )
    parser.add_argument(
        "--home",
        default=os.environ.get("STRIPECONF_HOME"),
        help="stripeconf home directory (defaults to $STRIPECONF_HOME or ~/.config/stripeconf).",
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("STRIPECONF_CONFIG"),
        help="Path to config.json (overrides --home).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log Stripe calls to stderr.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    add_general_subparsers(sub=sub)
    add_stripe_subparsers(sub=sub)

    return parser


__all__ = ["build_parser"]

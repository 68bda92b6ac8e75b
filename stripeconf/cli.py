from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable

from . import __version__
from .cli_commands import handle_config_commands, handle_project_commands, handle_stripe_commands
from .cli_parser import build_parser
from .core.errors import StripeconfError
from .core.paths import resolve_config_path
from .core.project_store import ProjectRecord, ProjectStore
from .core.redact import redact_text
from .providers.stripe_client import StripeClient


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[stripeconf] %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if verbose:
        # Keep the SDK's request-level debug output out of -v.
        logging.getLogger("stripe").setLevel(logging.INFO)


def _dispatch(
    args: argparse.Namespace,
    *,
    store: ProjectStore,
    make_client: Callable[[ProjectRecord], StripeClient],
) -> int:
    if args.cmd == "version":
        print(__version__)
        return 0

    rc = handle_config_commands(args=args, store=store)
    if rc is not None:
        return rc
    rc = handle_project_commands(args=args, store=store, make_client=make_client)
    if rc is not None:
        return rc
    rc = handle_stripe_commands(args=args, store=store, make_client=make_client)
    if rc is not None:
        return rc
    return 2


def main(
    argv: list[str] | None = None,
    *,
    make_client: Callable[[ProjectRecord], StripeClient] | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(bool(args.verbose))

    store = ProjectStore(resolve_config_path(home=args.home, config=args.config))
    try:
        return _dispatch(args, store=store, make_client=make_client or StripeClient)
    except StripeconfError as e:
        print(f"[stripeconf] error: {redact_text(str(e))}", file=sys.stderr)
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

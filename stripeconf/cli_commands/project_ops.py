from __future__ import annotations

import argparse
import getpass
import json
import sys
from typing import Any, Callable

from ..core.errors import StripeClientError, ValidationError
from ..core.project_store import ProjectDraft, ProjectRecord, ProjectStore
from ..core.redact import redact_config, redact_project
from ..core.validate import (
    validate_currency,
    validate_environment,
    validate_org_id,
    validate_project_name,
    validate_publishable_key,
    validate_secret_key,
    validate_webhook_secret,
)
from ..providers.stripe_client import StripeClient


_PROMPT_ATTEMPTS = 3


def _read_user_line(question: str, *, secret: bool = False) -> str:
    if secret and sys.stdin.isatty():
        return getpass.getpass(question.strip() + " ", stream=sys.stderr).strip()
    print(question.strip(), file=sys.stderr)
    print("> ", end="", file=sys.stderr, flush=True)
    return sys.stdin.readline().strip()


def prompt_value(question: str, validate: Callable[[str], Any], *, default: str = "", secret: bool = False) -> Any:
    """Ask until `validate` accepts the answer (gives up after a few attempts)."""

    attempts = 0
    while True:
        answer = _read_user_line(question, secret=secret) or default
        try:
            return validate(answer)
        except ValidationError as e:
            attempts += 1
            print(f"[stripeconf] {e}", file=sys.stderr)
            if attempts >= _PROMPT_ATTEMPTS:
                raise


def _project_line(p: ProjectRecord, *, default_name: str | None) -> str:
    mark = "*" if p.name == default_name else " "
    return f"{mark} {p.name} ({p.environment}) currency={p.default_currency}"


def _print_project(p: ProjectRecord, *, as_json: bool) -> None:
    shown = redact_project(p.to_dict())
    if as_json:
        print(json.dumps(shown, indent=2, sort_keys=True))
        return
    for k in sorted(shown.keys()):
        print(f"{k}: {shown[k]}")


def _collect_setup_draft(args: argparse.Namespace) -> ProjectDraft:
    interactive = sys.stdin.isatty()

    name = validate_project_name(args.name) if args.name is not None else prompt_value("Project name:", validate_project_name)
    environment = (
        validate_environment(args.environment)
        if args.environment is not None
        else prompt_value("Environment (test/live) [test]:", validate_environment, default="test")
    )
    publishable_key = (
        validate_publishable_key(args.publishable_key)
        if args.publishable_key is not None
        else prompt_value("Publishable key:", validate_publishable_key, secret=True)
    )
    secret_key = (
        validate_secret_key(args.secret_key)
        if args.secret_key is not None
        else prompt_value("Secret key:", validate_secret_key, secret=True)
    )
    if args.webhook_secret is not None or not interactive:
        webhook_secret = validate_webhook_secret(args.webhook_secret)
    else:
        webhook_secret = prompt_value("Webhook secret (optional):", validate_webhook_secret, secret=True)
    default_currency = (
        validate_currency(args.default_currency)
        if args.default_currency is not None
        else prompt_value("Default currency [usd]:", validate_currency, default="usd")
    )
    return ProjectDraft(
        name=name,
        environment=environment,
        publishable_key=publishable_key,
        secret_key=secret_key,
        default_currency=default_currency,
        webhook_secret=webhook_secret,
        org_id=validate_org_id(args.org_id),
    )


def _draft_from_flags(args: argparse.Namespace) -> ProjectDraft:
    return ProjectDraft(
        name=validate_project_name(args.name),
        environment=validate_environment(args.environment or "test"),
        publishable_key=validate_publishable_key(args.publishable_key),
        secret_key=validate_secret_key(args.secret_key),
        default_currency=validate_currency(args.default_currency or "usd"),
        webhook_secret=validate_webhook_secret(args.webhook_secret),
        org_id=validate_org_id(args.org_id),
    )


def _updates_from_flags(args: argparse.Namespace) -> dict[str, Any]:
    updates: dict[str, Any] = {}
    if args.environment is not None:
        updates["environment"] = validate_environment(args.environment)
    if args.publishable_key is not None:
        updates["publishable_key"] = validate_publishable_key(args.publishable_key)
    if args.secret_key is not None:
        updates["secret_key"] = validate_secret_key(args.secret_key)
    if args.webhook_secret is not None:
        updates["webhook_secret"] = validate_webhook_secret(args.webhook_secret)
    if args.default_currency is not None:
        updates["default_currency"] = validate_currency(args.default_currency)
    if args.org_id is not None:
        updates["org_id"] = validate_org_id(args.org_id)
    return updates


def _verify_draft(draft: ProjectDraft, make_client: Callable[[ProjectRecord], StripeClient]) -> None:
    provisional = ProjectRecord(
        id="",
        name=draft.name,
        environment=draft.environment,
        publishable_key=draft.publishable_key,
        secret_key=draft.secret_key,
        default_currency=draft.default_currency,
        created_at="",
        updated_at="",
    )
    print("[stripeconf] validating API keys...", file=sys.stderr)
    try:
        make_client(provisional).verify_credentials()
    except StripeClientError as e:
        raise StripeClientError(
            f"Invalid API keys or network error: {e}",
            status_code=e.status_code,
            code=e.code,
            cause=e,
        ) from e


def handle_config_commands(*, args: argparse.Namespace, store: ProjectStore) -> int | None:
    if args.cmd != "config":
        return None

    if args.config_cmd == "path":
        print(str(store.config_path))
        return 0

    if args.config_cmd == "show":
        doc = store.load_config()
        print(json.dumps(redact_config(doc.to_dict()), indent=2, sort_keys=True))
        return 0

    return 2


def handle_project_commands(
    *,
    args: argparse.Namespace,
    store: ProjectStore,
    make_client: Callable[[ProjectRecord], StripeClient],
) -> int | None:
    if args.cmd == "setup":
        draft = _collect_setup_draft(args)
        if not args.no_verify:
            _verify_draft(draft, make_client)
        project = store.add_project(draft)
        print(f"Project configured: {project.name}")
        print(f"  environment: {project.environment}")
        print(f"  currency: {project.default_currency}")
        print(f"  config: {store.config_path}")
        return 0

    if args.cmd != "project":
        return None

    if args.project_cmd == "add":
        project = store.add_project(_draft_from_flags(args))
        print(f"added project {project.name} id={project.id}")
        return 0

    if args.project_cmd == "list":
        doc = store.load_config()
        if args.json:
            print(json.dumps([redact_project(p.to_dict()) for p in doc.projects], indent=2, sort_keys=True))
            return 0
        if not doc.projects:
            print('(no projects; run "stripeconf setup")')
            return 0
        for p in doc.projects:
            print(_project_line(p, default_name=doc.default_project))
        return 0

    if args.project_cmd == "show":
        _print_project(store.resolve_project(args.name), as_json=args.json)
        return 0

    if args.project_cmd == "update":
        updates = _updates_from_flags(args)
        if not updates:
            print("nothing to update: pass at least one field flag", file=sys.stderr)
            return 2
        project = store.update_project(args.name, **updates)
        print(f"updated project {project.name} ({', '.join(sorted(updates))})")
        return 0

    if args.project_cmd == "remove":
        store.delete_project(args.name)
        print(f"removed project {args.name}")
        return 0

    if args.project_cmd == "use":
        store.set_default_project(args.name)
        print(f"default project: {args.name}")
        return 0

    if args.project_cmd == "default":
        _print_project(store.get_default_project(), as_json=args.json)
        return 0

    return 2

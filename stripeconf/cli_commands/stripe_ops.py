from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Callable

from ..core.errors import StripeClientError, ValidationError
from ..core.project_store import ProjectRecord, ProjectStore
from ..core.validate import parse_metadata, validate_currency, validate_org_id, validate_url
from ..providers.stripe_client import DEFAULT_LIST_LIMIT, DEFAULT_WEBHOOK_EVENTS, StripeClient, drop_unset, to_plain
from .project_ops import prompt_value


_COMMANDS = ("products", "prices", "connect", "webhooks")


def _print_obj(obj: Any) -> None:
    print(json.dumps(to_plain(obj), indent=2, sort_keys=True))


def _print_list(items: list[Any], *, as_json: bool, render: Callable[[dict[str, Any]], str], empty: str) -> None:
    rows = [to_plain(x) for x in items]
    if as_json:
        print(json.dumps(rows, indent=2, sort_keys=True))
        return
    if not rows:
        print(empty)
        return
    for row in rows:
        print(render(row))


def _product_row(p: dict[str, Any]) -> str:
    suffix = "" if p.get("active", True) else " (inactive)"
    return f"{p.get('id')}  {p.get('name')}{suffix}"


def _price_row(p: dict[str, Any]) -> str:
    amount = p.get("unit_amount")
    recurring = p.get("recurring") or {}
    interval = f"/{recurring.get('interval')}" if recurring.get("interval") else ""
    suffix = "" if p.get("active", True) else " (inactive)"
    return f"{p.get('id')}  {amount} {str(p.get('currency') or '').upper()}{interval}  product={p.get('product')}{suffix}"


def _account_row(a: dict[str, Any]) -> str:
    return f"{a.get('id')}  type={a.get('type')} email={a.get('email') or '-'} charges_enabled={str(bool(a.get('charges_enabled'))).lower()}"


def _webhook_row(w: dict[str, Any]) -> str:
    events = w.get("enabled_events") or []
    return f"{w.get('id')}  {w.get('url')}  status={w.get('status')} events={len(events)}"


def _handle_products(args: argparse.Namespace, client: StripeClient) -> int:
    cmd = args.products_cmd
    if cmd == "list":
        items = client.list_products(
            limit=args.limit,
            starting_after=args.starting_after,
            ending_before=args.ending_before,
            active=args.active,
        )
        _print_list(items, as_json=args.json, render=_product_row, empty="(no products)")
        return 0
    if cmd == "get":
        _print_obj(client.get_product(args.product_id))
        return 0
    if cmd == "create":
        params = drop_unset(
            {
                "name": args.name,
                "description": args.description,
                "unit_label": args.unit_label,
                "statement_descriptor": args.statement_descriptor,
                "tax_code": args.tax_code,
                "active": args.active,
                "images": [validate_url(u, field="images") for u in args.images] or None,
                "metadata": parse_metadata(args.metadata) or None,
            }
        )
        _print_obj(client.create_product(**params))
        return 0
    if cmd == "update":
        updates = drop_unset(
            {
                "name": args.name,
                "description": args.description,
                "unit_label": args.unit_label,
                "statement_descriptor": args.statement_descriptor,
                "tax_code": args.tax_code,
                "active": args.active,
                "metadata": parse_metadata(args.metadata) or None,
            }
        )
        if not updates:
            print("nothing to update: pass at least one field flag", file=sys.stderr)
            return 2
        _print_obj(client.update_product(args.product_id, **updates))
        return 0
    if cmd == "delete":
        client.delete_product(args.product_id)
        print(f"deleted product {args.product_id}")
        return 0
    return 2


def _handle_prices(args: argparse.Namespace, client: StripeClient) -> int:
    cmd = args.prices_cmd
    if cmd == "list":
        items = client.list_prices(
            limit=args.limit,
            starting_after=args.starting_after,
            ending_before=args.ending_before,
            active=args.active,
            product=args.product,
            type=args.type,
            recurring_interval=args.interval,
        )
        _print_list(items, as_json=args.json, render=_price_row, empty="(no prices)")
        return 0
    if cmd == "get":
        _print_obj(client.get_price(args.price_id))
        return 0
    if cmd == "create":
        currency = validate_currency(args.currency or client.project.default_currency)
        recurring = None
        if args.interval:
            recurring = drop_unset({"interval": args.interval, "interval_count": args.interval_count})
        params = drop_unset(
            {
                "product": args.product,
                "unit_amount": args.unit_amount,
                "currency": currency,
                "recurring": recurring,
                "nickname": args.nickname,
                "lookup_key": args.lookup_key,
                "metadata": parse_metadata(args.metadata) or None,
            }
        )
        _print_obj(client.create_price(**params))
        return 0
    if cmd == "update":
        updates = drop_unset(
            {
                "active": args.active,
                "nickname": args.nickname,
                "lookup_key": args.lookup_key,
                "metadata": parse_metadata(args.metadata) or None,
            }
        )
        if not updates:
            print("nothing to update: pass at least one field flag", file=sys.stderr)
            return 2
        _print_obj(client.update_price(args.price_id, **updates))
        return 0
    if cmd == "archive":
        client.archive_price(args.price_id)
        print(f"archived price {args.price_id}")
        return 0
    return 2


_CONNECT_CAPABILITIES = {
    "card_payments": {"requested": True},
    "transfers": {"requested": True},
}

_ORG_ID_HELP = """\
Find your Stripe organization id under Settings > Organization:
  https://dashboard.stripe.com/settings/organization
It looks like org_6SNYbwPDSQupbJ7WySAFNzc."""

_CONNECT_STEPS = """\
Connect is not enabled on this account yet:
  1. Open the Connect settings in the Stripe Dashboard.
  2. Click "Get started with Connect" and choose a platform type.
  3. Select the account types to support (express is the usual choice).
  4. Complete the platform profile, then run "stripeconf connect start" again."""


def _save_org_id(store: ProjectStore, project: ProjectRecord, org_id: str | None) -> str | None:
    """Persist `org_id` on the project when it is new; returns the effective org id."""

    if org_id and org_id != project.org_id:
        store.update_project(project.name, org_id=org_id)
        print(f"[stripeconf] org id saved to project {project.name!r}", file=sys.stderr)
        return org_id
    return project.org_id


def _webhook_events(requested: list[str]) -> list[str]:
    events = list(requested) or list(DEFAULT_WEBHOOK_EVENTS)
    if "*" in events:
        return ["*"]
    return events


def _business_name(account: dict[str, Any]) -> str:
    profile = account.get("business_profile") or {}
    dashboard = (account.get("settings") or {}).get("dashboard") or {}
    return str(profile.get("name") or dashboard.get("display_name") or "Not set")


def _yes_no(v: Any) -> str:
    return "yes" if v else "no"


def _connect_start(args: argparse.Namespace, client: StripeClient, store: ProjectStore) -> int:
    project = client.project
    org_id = validate_org_id(args.org_id)
    if org_id is None and not project.org_id and sys.stdin.isatty():
        print(_ORG_ID_HELP, file=sys.stderr)
        org_id = prompt_value("Stripe organization ID (org_..., Enter to skip):", validate_org_id)
    org_id = _save_org_id(store, project, org_id)

    try:
        platform = to_plain(client.get_platform_account())
    except StripeClientError:
        print("[stripeconf] could not access the platform account; check the project's secret key", file=sys.stderr)
        raise

    print(f"platform account: {platform.get('id')}")
    print(f"  business name: {_business_name(platform)}")
    print(f"  country: {platform.get('country') or 'N/A'}")
    if platform.get("email"):
        print(f"  email: {platform.get('email')}")
    if org_id:
        print(f"  org id: {org_id}")
    print(f"  environment: {project.environment}")
    print(f"  charges enabled: {_yes_no(platform.get('charges_enabled'))}")
    print(f"  payouts enabled: {_yes_no(platform.get('payouts_enabled'))}")

    try:
        client.list_connect_accounts(limit=1)
    except StripeClientError as e:
        print(f"[stripeconf] connect check failed: {e}", file=sys.stderr)
        print(_CONNECT_STEPS)
        prefix = "test/" if project.environment == "test" else ""
        print(f"  https://dashboard.stripe.com/{prefix}settings/connect")
        return 0

    accounts = [to_plain(a) for a in client.list_connect_accounts(limit=DEFAULT_LIST_LIMIT)]
    print("Connect is ready.")
    print(f"  connected accounts: {len(accounts)}")
    if not accounts:
        print('  none yet; create one with "stripeconf connect create"')
        return 0
    for a in accounts[:5]:
        status = "active" if a.get("charges_enabled") else "pending"
        print(f"  {a.get('id')} ({a.get('type') or 'unknown'}) {status}")
    if len(accounts) > 5:
        print(f"  ... and {len(accounts) - 5} more")
    return 0


def _connect_full_setup(args: argparse.Namespace, client: StripeClient, store: ProjectStore) -> int:
    project = client.project
    name = str(args.name or "").strip()
    if not name:
        raise ValidationError("Account name is required", field="name")
    country = str(args.country or "").strip().upper()
    if len(country) != 2:
        raise ValidationError("Country must be a 2-letter code", field="country")
    url = validate_url(args.url)
    flag_org_id = validate_org_id(args.org_id)
    org_id = flag_org_id or project.org_id
    events = _webhook_events(args.events)

    params: dict[str, Any] = drop_unset(
        {
            "type": args.type,
            "country": country,
            "email": args.email,
            "metadata": drop_unset({"name": name, "org_id": org_id}),
        }
    )
    params["capabilities"] = dict(_CONNECT_CAPABILITIES)
    account = to_plain(client.create_connect_account(**params))
    _save_org_id(store, project, flag_org_id)

    endpoint = to_plain(
        client.create_webhook_endpoint(
            url=url,
            enabled_events=events,
            description=f"Webhook for {name}",
            metadata={"account_name": name, "connected_account": str(account.get("id") or "")},
        )
    )
    secret = str(endpoint.get("secret") or "")
    if args.save_secret and secret:
        store.update_project(project.name, webhook_secret=secret)
        print(f"[stripeconf] signing secret saved to project {project.name!r}", file=sys.stderr)

    env = {
        "STRIPE_SECRET_KEY": project.secret_key,
        "STRIPE_PUBLISHABLE_KEY": project.publishable_key,
        "NEXT_PUBLIC_STRIPE_PUBLISHABLE_KEY": project.publishable_key,
        "STRIPE_WEBHOOK_SECRET": secret,
        "STRIPE_CONNECTED_ACCOUNT_ID": str(account.get("id") or ""),
    }
    if org_id:
        env["STRIPE_ORG_ID"] = org_id

    if args.json:
        summary = {
            "connected_account": {
                "id": account.get("id"),
                "type": account.get("type"),
                "country": account.get("country"),
                "name": name,
            },
            "webhook": {
                "id": endpoint.get("id"),
                "url": endpoint.get("url"),
                "secret": secret,
                "events": events,
            },
            "env": env,
        }
        print(json.dumps(summary, indent=2, sort_keys=True))
        return 0

    print(f"connected account {account.get('id')} type={account.get('type')} name={name}")
    print(f"webhook endpoint {endpoint.get('id')} url={endpoint.get('url')}")
    print()
    print("# add to your .env")
    for k, v in env.items():
        print(f"{k}={v}")
    print()
    print(f'next: "stripeconf connect link {account.get("id")} --refresh-url ... --return-url ..." to onboard the account')
    return 0


def _handle_connect(args: argparse.Namespace, client: StripeClient, store: ProjectStore) -> int:
    cmd = args.connect_cmd
    if cmd == "start":
        return _connect_start(args, client, store)
    if cmd == "full-setup":
        return _connect_full_setup(args, client, store)
    if cmd == "list":
        items = client.list_connect_accounts(
            limit=args.limit,
            starting_after=args.starting_after,
            ending_before=args.ending_before,
        )
        _print_list(items, as_json=args.json, render=_account_row, empty="(no connected accounts)")
        return 0
    if cmd == "get":
        _print_obj(client.get_connect_account(args.account_id))
        return 0
    if cmd == "create":
        org_id = validate_org_id(args.org_id)
        params: dict[str, Any] = drop_unset(
            {
                "type": args.type,
                "country": str(args.country or "").upper() or None,
                "email": args.email,
                "business_type": args.business_type,
                "metadata": parse_metadata(args.metadata) or None,
            }
        )
        if args.type in ("express", "custom"):
            params["capabilities"] = dict(_CONNECT_CAPABILITIES)
        account = client.create_connect_account(**params)
        # Only record the org id once Stripe has accepted the account.
        _save_org_id(store, client.project, org_id)
        _print_obj(account)
        return 0
    if cmd == "link":
        link = client.create_account_link(
            account=args.account_id,
            refresh_url=validate_url(args.refresh_url, field="refresh_url"),
            return_url=validate_url(args.return_url, field="return_url"),
            type=args.type,
        )
        print(to_plain(link).get("url", ""))
        return 0
    return 2


def _handle_webhooks(args: argparse.Namespace, client: StripeClient, store: ProjectStore) -> int:
    cmd = args.webhooks_cmd
    if cmd == "list":
        items = client.list_webhook_endpoints(limit=args.limit)
        _print_list(items, as_json=args.json, render=_webhook_row, empty="(no webhook endpoints)")
        return 0
    if cmd == "create":
        events = _webhook_events(args.events)
        endpoint = client.create_webhook_endpoint(
            url=validate_url(args.url),
            enabled_events=events,
            description=args.description or f"Webhook for {client.project.name}",
            metadata=parse_metadata(args.metadata) or None,
        )
        data = to_plain(endpoint)
        print(f"created webhook endpoint {data.get('id')} url={data.get('url')}")
        secret = str(data.get("secret") or "")
        if args.save_secret and secret:
            store.update_project(client.project.name, webhook_secret=secret)
            print(f"[stripeconf] signing secret saved to project {client.project.name!r}", file=sys.stderr)
        elif secret:
            # Stripe only returns the signing secret once, at creation.
            print(f"STRIPE_WEBHOOK_SECRET={secret}")
        return 0
    if cmd == "delete":
        client.delete_webhook_endpoint(args.endpoint_id)
        print(f"deleted webhook endpoint {args.endpoint_id}")
        return 0
    return 2


def handle_stripe_commands(
    *,
    args: argparse.Namespace,
    store: ProjectStore,
    make_client: Callable[[ProjectRecord], StripeClient],
) -> int | None:
    if args.cmd not in _COMMANDS:
        return None

    project = store.resolve_project(args.project)
    client = make_client(project)

    if args.cmd == "products":
        return _handle_products(args, client)
    if args.cmd == "prices":
        return _handle_prices(args, client)
    if args.cmd == "connect":
        return _handle_connect(args, client, store)
    return _handle_webhooks(args, client, store)

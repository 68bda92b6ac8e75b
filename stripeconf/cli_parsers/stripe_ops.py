from __future__ import annotations

from typing import Any


def _project_arg(p: Any) -> None:
    p.add_argument("--project", default=None, help="Project name (default: the default project).")


def _metadata_arg(p: Any) -> None:
    p.add_argument("--metadata", action="append", default=[], metavar="KEY=VALUE", help="Metadata entry (repeatable).")


def _list_args(p: Any, *, limit: int) -> None:
    p.add_argument("--limit", type=int, default=limit, help=f"Max items to return (default: {limit}).")
    p.add_argument("--starting-after", default=None, help="Pagination cursor (object id to start after).")
    p.add_argument("--ending-before", default=None, help="Pagination cursor (object id to end before).")
    p.add_argument("--json", action="store_true", help="Print as JSON.")


def _active_flags(p: Any) -> None:
    g = p.add_mutually_exclusive_group()
    g.add_argument("--active", dest="active", action="store_const", const=True, default=None, help="Only/mark active.")
    g.add_argument("--inactive", dest="active", action="store_const", const=False, help="Only/mark inactive.")


def add_stripe_subparsers(*, sub: Any) -> None:
    # products
    p_prod = sub.add_parser("products", help="Manage Stripe products.")
    prod_sub = p_prod.add_subparsers(dest="products_cmd", required=True)

    p = prod_sub.add_parser("list", help="List products.")
    _project_arg(p)
    _list_args(p, limit=100)
    _active_flags(p)

    p = prod_sub.add_parser("get", help="Show a product.")
    _project_arg(p)
    p.add_argument("product_id")

    p = prod_sub.add_parser("create", help="Create a product.")
    _project_arg(p)
    p.add_argument("--name", required=True, help="Product name.")
    p.add_argument("--description", default=None)
    p.add_argument("--unit-label", default=None, help='Unit label (e.g. "seat").')
    p.add_argument("--statement-descriptor", default=None)
    p.add_argument("--tax-code", default=None)
    p.add_argument("--image", dest="images", action="append", default=[], help="Image URL (repeatable).")
    _metadata_arg(p)
    _active_flags(p)

    p = prod_sub.add_parser("update", help="Update a product.")
    _project_arg(p)
    p.add_argument("product_id")
    p.add_argument("--name", default=None)
    p.add_argument("--description", default=None)
    p.add_argument("--unit-label", default=None)
    p.add_argument("--statement-descriptor", default=None)
    p.add_argument("--tax-code", default=None)
    _metadata_arg(p)
    _active_flags(p)

    p = prod_sub.add_parser("delete", help="Delete a product.")
    _project_arg(p)
    p.add_argument("product_id")

    # prices
    p_price = sub.add_parser("prices", help="Manage Stripe prices.")
    price_sub = p_price.add_subparsers(dest="prices_cmd", required=True)

    p = price_sub.add_parser("list", help="List prices.")
    _project_arg(p)
    _list_args(p, limit=100)
    _active_flags(p)
    p.add_argument("--product", default=None, help="Filter by product id.")
    p.add_argument("--type", choices=["one_time", "recurring"], default=None)
    p.add_argument("--interval", choices=["day", "week", "month", "year"], default=None, help="Filter by recurring interval.")

    p = price_sub.add_parser("get", help="Show a price.")
    _project_arg(p)
    p.add_argument("price_id")

    p = price_sub.add_parser("create", help="Create a price.")
    _project_arg(p)
    p.add_argument("--product", required=True, help="Product id.")
    p.add_argument("--unit-amount", type=int, required=True, help="Amount in the smallest currency unit (e.g. cents).")
    p.add_argument("--currency", default=None, help="Currency (default: the project's default currency).")
    p.add_argument("--interval", choices=["day", "week", "month", "year"], default=None, help="Make the price recurring.")
    p.add_argument("--interval-count", type=int, default=None)
    p.add_argument("--nickname", default=None)
    p.add_argument("--lookup-key", default=None)
    _metadata_arg(p)

    p = price_sub.add_parser("update", help="Update a price (active/nickname/lookup key/metadata).")
    _project_arg(p)
    p.add_argument("price_id")
    p.add_argument("--nickname", default=None)
    p.add_argument("--lookup-key", default=None)
    _metadata_arg(p)
    _active_flags(p)

    p = price_sub.add_parser("archive", help="Archive (deactivate) a price.")
    _project_arg(p)
    p.add_argument("price_id")

    # connect
    p_conn = sub.add_parser("connect", help="Manage Stripe Connect accounts.")
    conn_sub = p_conn.add_subparsers(dest="connect_cmd", required=True)

    p = conn_sub.add_parser("start", help="Check the platform account and whether Connect is enabled.")
    _project_arg(p)
    p.add_argument("--org-id", default=None, help="Save this Stripe org id (org_...) on the project (prompted on a tty when unset).")

    p = conn_sub.add_parser("full-setup", help="Create a connected account and its webhook endpoint, then print .env values.")
    _project_arg(p)
    p.add_argument("--name", required=True, help="Connected account name (stored in metadata).")
    p.add_argument("--url", required=True, help="Webhook endpoint URL (https://...).")
    p.add_argument("--type", choices=["express", "standard", "custom"], default="express")
    p.add_argument("--country", default="US", help="Two-letter country code (default: US).")
    p.add_argument("--email", default=None)
    p.add_argument("--event", dest="events", action="append", default=[], help="Event type (repeatable; default: common set; '*' for all).")
    p.add_argument("--org-id", default=None, help="Save this Stripe org id (org_...) on the project.")
    p.add_argument("--save-secret", action="store_true", help="Store the endpoint's signing secret on the project.")
    p.add_argument("--json", action="store_true", help="Print the summary as JSON.")

    p = conn_sub.add_parser("list", help="List connected accounts.")
    _project_arg(p)
    _list_args(p, limit=20)

    p = conn_sub.add_parser("get", help="Show a connected account.")
    _project_arg(p)
    p.add_argument("account_id")

    p = conn_sub.add_parser("create", help="Create a connected account.")
    _project_arg(p)
    p.add_argument("--type", choices=["express", "standard", "custom"], default="express")
    p.add_argument("--country", default="US", help="Two-letter country code (default: US).")
    p.add_argument("--email", default=None)
    p.add_argument("--business-type", choices=["individual", "company", "non_profit", "government_entity"], default=None)
    p.add_argument("--org-id", default=None, help="Save this Stripe org id (org_...) on the project.")
    _metadata_arg(p)

    p = conn_sub.add_parser("link", help="Create an onboarding (or update) link for a connected account.")
    _project_arg(p)
    p.add_argument("account_id")
    p.add_argument("--refresh-url", required=True)
    p.add_argument("--return-url", required=True)
    p.add_argument("--type", choices=["account_onboarding", "account_update"], default="account_onboarding")

    # webhooks
    p_wh = sub.add_parser("webhooks", help="Manage webhook endpoints.")
    wh_sub = p_wh.add_subparsers(dest="webhooks_cmd", required=True)

    p = wh_sub.add_parser("list", help="List webhook endpoints.")
    _project_arg(p)
    p.add_argument("--limit", type=int, default=100)
    p.add_argument("--json", action="store_true", help="Print as JSON.")

    p = wh_sub.add_parser("create", help="Register a webhook endpoint.")
    _project_arg(p)
    p.add_argument("--url", required=True, help="Endpoint URL (https://...).")
    p.add_argument("--event", dest="events", action="append", default=[], help="Event type (repeatable; default: common set; '*' for all).")
    p.add_argument("--description", default=None)
    p.add_argument("--save-secret", action="store_true", help="Store the endpoint's signing secret on the project.")
    _metadata_arg(p)

    p = wh_sub.add_parser("delete", help="Delete a webhook endpoint.")
    _project_arg(p)
    p.add_argument("endpoint_id")

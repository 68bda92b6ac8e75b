"""Thin wrapper over the Stripe SDK, bound to one configured project.

All calls pass the project's secret key per request (no global `stripe.api_key`),
so clients for different projects can coexist in one process. SDK errors are
translated to StripeClientError; nothing is retried here.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import stripe

from ..core.errors import StripeClientError
from ..core.project_store import ProjectRecord
from ..core.redact import redact_text


logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100
DEFAULT_ACCOUNT_LIST_LIMIT = 20

# Event set offered by default when registering a webhook endpoint.
DEFAULT_WEBHOOK_EVENTS = [
    "checkout.session.completed",
    "payment_intent.succeeded",
    "payment_intent.payment_failed",
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "invoice.paid",
    "invoice.payment_failed",
    "account.updated",
]


def drop_unset(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


def to_plain(obj: Any) -> Any:
    """Convert SDK objects (StripeObject/ListObject) into plain JSON-able data."""

    for attr in ("to_dict", "to_dict_recursive"):
        fn = getattr(obj, attr, None)
        if callable(fn):
            return fn()
    if isinstance(obj, dict):
        return {k: to_plain(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [to_plain(x) for x in obj]
    return obj


class StripeClient:
    def __init__(self, project: ProjectRecord, *, sdk: Any = None) -> None:
        self._project = project
        self._sdk = sdk if sdk is not None else stripe

    @property
    def project(self) -> ProjectRecord:
        return self._project

    def _call(self, op: str, fn: Callable[..., Any], *args: Any, **params: Any) -> Any:
        t0 = time.perf_counter()
        try:
            out = fn(*args, api_key=self._project.secret_key, **params)
        except stripe.StripeError as e:
            elapsed_ms = (time.perf_counter() - t0) * 1000
            message = getattr(e, "user_message", None) or str(e) or "Unknown Stripe API error"
            logger.warning(
                "stripe %s failed (project=%s, %.0f ms): %s",
                op,
                self._project.name,
                elapsed_ms,
                redact_text(message),
            )
            raise StripeClientError(
                message,
                status_code=getattr(e, "http_status", None),
                code=getattr(e, "code", None),
                cause=e,
            ) from e
        logger.debug("stripe %s ok (project=%s, %.0f ms)", op, self._project.name, (time.perf_counter() - t0) * 1000)
        return out

    def _list(self, op: str, fn: Callable[..., Any], params: dict[str, Any]) -> list[Any]:
        resp = self._call(op, fn, **drop_unset(params))
        return list(resp.data)

    # Products

    def create_product(self, **params: Any) -> Any:
        return self._call("products.create", self._sdk.Product.create, **params)

    def get_product(self, product_id: str) -> Any:
        return self._call("products.retrieve", self._sdk.Product.retrieve, product_id)

    def update_product(self, product_id: str, **updates: Any) -> Any:
        return self._call("products.update", self._sdk.Product.modify, product_id, **updates)

    def delete_product(self, product_id: str) -> None:
        self._call("products.delete", self._sdk.Product.delete, product_id)

    def list_products(
        self,
        *,
        limit: int = DEFAULT_LIST_LIMIT,
        starting_after: str | None = None,
        ending_before: str | None = None,
        active: bool | None = None,
    ) -> list[Any]:
        return self._list(
            "products.list",
            self._sdk.Product.list,
            {"limit": limit, "starting_after": starting_after, "ending_before": ending_before, "active": active},
        )

    # Prices

    def create_price(self, **params: Any) -> Any:
        return self._call("prices.create", self._sdk.Price.create, **params)

    def get_price(self, price_id: str) -> Any:
        return self._call("prices.retrieve", self._sdk.Price.retrieve, price_id)

    def update_price(self, price_id: str, **updates: Any) -> Any:
        """Most price fields are immutable; Stripe accepts active/metadata/nickname/lookup_key."""

        return self._call("prices.update", self._sdk.Price.modify, price_id, **updates)

    def archive_price(self, price_id: str) -> Any:
        # Prices cannot be deleted, only deactivated.
        return self.update_price(price_id, active=False)

    def list_prices(
        self,
        *,
        limit: int = DEFAULT_LIST_LIMIT,
        starting_after: str | None = None,
        ending_before: str | None = None,
        active: bool | None = None,
        product: str | None = None,
        type: str | None = None,
        recurring_interval: str | None = None,
    ) -> list[Any]:
        params: dict[str, Any] = {
            "limit": limit,
            "starting_after": starting_after,
            "ending_before": ending_before,
            "active": active,
            "product": product,
            "type": type,
        }
        if recurring_interval:
            params["recurring"] = {"interval": recurring_interval}
        return self._list("prices.list", self._sdk.Price.list, params)

    # Connect

    def create_connect_account(self, **params: Any) -> Any:
        return self._call("accounts.create", self._sdk.Account.create, **params)

    def get_connect_account(self, account_id: str) -> Any:
        return self._call("accounts.retrieve", self._sdk.Account.retrieve, account_id)

    def get_platform_account(self) -> Any:
        """The account that owns the project's secret key (retrieve without an id)."""

        return self._call("accounts.retrieve_platform", self._sdk.Account.retrieve)

    def list_connect_accounts(
        self,
        *,
        limit: int = DEFAULT_ACCOUNT_LIST_LIMIT,
        starting_after: str | None = None,
        ending_before: str | None = None,
    ) -> list[Any]:
        return self._list(
            "accounts.list",
            self._sdk.Account.list,
            {"limit": limit, "starting_after": starting_after, "ending_before": ending_before},
        )

    def create_account_link(
        self,
        *,
        account: str,
        refresh_url: str,
        return_url: str,
        type: str = "account_onboarding",
    ) -> Any:
        return self._call(
            "account_links.create",
            self._sdk.AccountLink.create,
            account=account,
            refresh_url=refresh_url,
            return_url=return_url,
            type=type,
        )

    # Webhooks

    def create_webhook_endpoint(
        self,
        *,
        url: str,
        enabled_events: list[str],
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Any:
        params = drop_unset({"description": description, "metadata": metadata or None})
        return self._call(
            "webhook_endpoints.create",
            self._sdk.WebhookEndpoint.create,
            url=url,
            enabled_events=list(enabled_events),
            **params,
        )

    def list_webhook_endpoints(self, *, limit: int = DEFAULT_LIST_LIMIT) -> list[Any]:
        return self._list("webhook_endpoints.list", self._sdk.WebhookEndpoint.list, {"limit": limit})

    def delete_webhook_endpoint(self, endpoint_id: str) -> None:
        self._call("webhook_endpoints.delete", self._sdk.WebhookEndpoint.delete, endpoint_id)

    def verify_credentials(self) -> None:
        """Cheapest authenticated call: list at most one product."""

        self.list_products(limit=1)

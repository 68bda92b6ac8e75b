from __future__ import annotations

import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest import mock

import stripe

from stripeconf import __version__
from stripeconf.cli import main
from stripeconf.cli_commands.project_ops import prompt_value
from stripeconf.cli_parser import build_parser
from stripeconf.core.errors import ValidationError
from stripeconf.core.project_store import ProjectRecord, ProjectStore
from stripeconf.core.validate import validate_currency
from stripeconf.providers.stripe_client import DEFAULT_WEBHOOK_EVENTS, StripeClient


class _Resource:
    def __init__(self, kind: str, calls: list[tuple[str, str, tuple[Any, ...], dict[str, Any]]]) -> None:
        self.kind = kind
        self.calls = calls
        self.results: dict[str, Any] = {}
        self.errors: dict[str, BaseException] = {}

    def _do(self, method: str, *args: Any, **kwargs: Any) -> Any:
        self.calls.append((self.kind, method, args, kwargs))
        if method in self.errors:
            raise self.errors[method]
        if method == "list":
            return SimpleNamespace(data=self.results.get("list", []))
        return self.results.get(method, {"id": f"{self.kind}_1"})

    def create(self, *args: Any, **kwargs: Any) -> Any:
        return self._do("create", *args, **kwargs)

    def retrieve(self, *args: Any, **kwargs: Any) -> Any:
        return self._do("retrieve", *args, **kwargs)

    def modify(self, *args: Any, **kwargs: Any) -> Any:
        return self._do("modify", *args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any) -> Any:
        return self._do("delete", *args, **kwargs)

    def list(self, *args: Any, **kwargs: Any) -> Any:
        return self._do("list", *args, **kwargs)


class _CliCase(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.home = Path(self._td.name) / "home"
        self.config = self.home / "config.json"
        self.calls: list[tuple[str, str, tuple[Any, ...], dict[str, Any]]] = []
        self.sdk = SimpleNamespace(
            Product=_Resource("prod", self.calls),
            Price=_Resource("price", self.calls),
            Account=_Resource("acct", self.calls),
            AccountLink=_Resource("link", self.calls),
            WebhookEndpoint=_Resource("we", self.calls),
        )
        self.clients: list[ProjectRecord] = []

    def tearDown(self) -> None:
        self._td.cleanup()

    def _make_client(self, project: ProjectRecord) -> StripeClient:
        self.clients.append(project)
        return StripeClient(project, sdk=self.sdk)

    def run_cli(self, *argv: str) -> tuple[int, str, str]:
        out = io.StringIO()
        err = io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            rc = main(["--home", str(self.home), "--config", str(self.config), *argv], make_client=self._make_client)
        return rc, out.getvalue(), err.getvalue()

    def add_project(self, name: str = "acme", *extra: str) -> None:
        rc, _, err = self.run_cli(
            "project",
            "add",
            name,
            "--publishable-key",
            "pk_test_x",
            "--secret-key",
            "sk_test_x",
            *extra,
        )
        self.assertEqual(rc, 0, err)

    @property
    def store(self) -> ProjectStore:
        return ProjectStore(self.config)


class TestParser(unittest.TestCase):
    def test_subcommands_parse(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["project", "update", "acme", "--currency", "eur"])
        self.assertEqual((args.cmd, args.project_cmd, args.name, args.default_currency), ("project", "update", "acme", "eur"))

        args = parser.parse_args(["prices", "list", "--inactive", "--interval", "month"])
        self.assertIs(args.active, False)
        self.assertEqual(args.interval, "month")
        self.assertEqual(args.limit, 100)

        args = parser.parse_args(["connect", "list"])
        self.assertEqual(args.limit, 20)

        args = parser.parse_args(["webhooks", "create", "--url", "https://x.test", "--event", "a", "--event", "b"])
        self.assertEqual(args.events, ["a", "b"])
        self.assertFalse(args.save_secret)

    def test_active_flags_are_exclusive(self) -> None:
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(["products", "list", "--active", "--inactive"])


class TestGeneralCommands(_CliCase):
    def test_version(self) -> None:
        rc, out, _ = self.run_cli("version")
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), __version__)

    def test_config_path_does_not_create_file(self) -> None:
        rc, out, _ = self.run_cli("config", "path")
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), str(self.config))
        self.assertFalse(self.config.exists())

    def test_config_show_masks_credentials(self) -> None:
        self.add_project("acme", "--secret-key", "sk_test_abcdef1234")
        rc, out, _ = self.run_cli("config", "show")
        self.assertEqual(rc, 0)
        self.assertNotIn("sk_test_abcdef1234", out)
        data = json.loads(out)
        self.assertEqual(data["projects"][0]["secretKey"], "sk_test_...1234")
        self.assertEqual(data["defaultProject"], "acme")

    def test_project_lifecycle(self) -> None:
        rc, out, _ = self.run_cli("project", "list")
        self.assertEqual(rc, 0)
        self.assertIn("no projects", out)

        self.add_project("acme")
        self.add_project("beta", "--environment", "live", "--currency", "EUR")

        rc, out, _ = self.run_cli("project", "list")
        self.assertEqual(out.splitlines(), ["* acme (test) currency=usd", "  beta (live) currency=eur"])

        rc, out, _ = self.run_cli("project", "use", "beta")
        self.assertEqual(rc, 0)
        self.assertEqual(self.store.get_default_project().name, "beta")

        rc, out, _ = self.run_cli("project", "update", "acme", "--webhook-secret", "whsec_abcdef")
        self.assertEqual(rc, 0)
        self.assertIn("webhook_secret", out)
        self.assertEqual(self.store.get_project("acme").webhook_secret, "whsec_abcdef")

        rc, _, _ = self.run_cli("project", "update", "acme", "--webhook-secret", "")
        self.assertEqual(rc, 0)
        self.assertIsNone(self.store.get_project("acme").webhook_secret)

        rc, out, _ = self.run_cli("project", "show", "--json")
        self.assertEqual(rc, 0)
        self.assertEqual(json.loads(out)["name"], "beta")

        rc, out, _ = self.run_cli("project", "remove", "beta")
        self.assertEqual(rc, 0)
        rc, _, err = self.run_cli("project", "default")
        self.assertEqual(rc, 1)
        self.assertIn("No default project", err)

    def test_update_without_fields_is_usage_error(self) -> None:
        self.add_project("acme")
        rc, _, err = self.run_cli("project", "update", "acme")
        self.assertEqual(rc, 2)
        self.assertIn("nothing to update", err)

    def test_errors_exit_one_with_message(self) -> None:
        self.add_project("acme")
        rc, _, err = self.run_cli("project", "add", "acme", "--publishable-key", "pk_x", "--secret-key", "sk_x")
        self.assertEqual(rc, 1)
        self.assertIn('Project with name "acme" already exists', err)

        rc, _, err = self.run_cli("project", "show", "nope")
        self.assertEqual(rc, 1)
        self.assertIn('Project "nope" not found', err)

    def test_invalid_key_format_is_rejected_before_saving(self) -> None:
        rc, _, err = self.run_cli("project", "add", "acme", "--publishable-key", "sk_wrong", "--secret-key", "sk_test_x")
        self.assertEqual(rc, 1)
        self.assertIn("should start with pk_", err)
        self.assertFalse(self.config.exists())

    def test_corrupt_config_is_reported(self) -> None:
        self.home.mkdir(parents=True)
        self.config.write_text("{oops", encoding="utf-8")
        rc, _, err = self.run_cli("project", "list")
        self.assertEqual(rc, 1)
        self.assertIn("Invalid JSON in config file", err)

    def test_setup_verifies_keys_then_saves(self) -> None:
        rc, out, _ = self.run_cli(
            "setup",
            "--name",
            "acme",
            "--environment",
            "test",
            "--publishable-key",
            "pk_test_x",
            "--secret-key",
            "sk_test_x",
            "--webhook-secret",
            "",
            "--currency",
            "usd",
        )
        self.assertEqual(rc, 0)
        self.assertIn("Project configured: acme", out)
        self.assertEqual(self.calls[0][:2], ("prod", "list"))
        self.assertEqual(self.calls[0][3]["limit"], 1)
        self.assertEqual(self.store.get_default_project().name, "acme")

    def test_setup_with_rejected_keys_saves_nothing(self) -> None:
        self.sdk.Product.errors["list"] = stripe.AuthenticationError("Invalid API Key provided", http_status=401)
        rc, _, err = self.run_cli(
            "setup",
            "--name",
            "acme",
            "--environment",
            "test",
            "--publishable-key",
            "pk_test_x",
            "--secret-key",
            "sk_test_x",
            "--webhook-secret",
            "",
            "--currency",
            "usd",
        )
        self.assertEqual(rc, 1)
        self.assertIn("Invalid API keys", err)
        self.assertFalse(self.config.exists())

    def test_setup_no_verify_skips_api(self) -> None:
        rc, _, _ = self.run_cli(
            "setup",
            "--name",
            "acme",
            "--environment",
            "live",
            "--publishable-key",
            "pk_live_x",
            "--secret-key",
            "sk_live_x",
            "--webhook-secret",
            "",
            "--currency",
            "gbp",
            "--no-verify",
        )
        self.assertEqual(rc, 0)
        self.assertEqual(self.calls, [])
        self.assertEqual(self.store.get_project("acme").default_currency, "gbp")


class TestStripeCommands(_CliCase):
    def test_requires_a_configured_project(self) -> None:
        rc, _, err = self.run_cli("products", "list")
        self.assertEqual(rc, 1)
        self.assertIn("No default project", err)
        self.assertEqual(self.calls, [])

    def test_uses_default_or_named_project(self) -> None:
        self.add_project("acme")
        self.add_project("beta", "--secret-key", "sk_test_beta")
        self.run_cli("products", "list")
        self.run_cli("products", "list", "--project", "beta")
        self.assertEqual([p.name for p in self.clients], ["acme", "beta"])
        self.assertEqual([c[3]["api_key"] for c in self.calls], ["sk_test_x", "sk_test_beta"])

    def test_products_list_and_create(self) -> None:
        self.add_project("acme")
        self.sdk.Product.results["list"] = [{"id": "prod_1", "name": "Pro", "active": True}]
        rc, out, _ = self.run_cli("products", "list")
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), "prod_1  Pro")

        self.sdk.Product.results["create"] = {"id": "prod_2", "name": "Team"}
        rc, out, _ = self.run_cli("products", "create", "--name", "Team", "--metadata", "tier=team")
        self.assertEqual(rc, 0)
        self.assertEqual(json.loads(out)["id"], "prod_2")
        kwargs = self.calls[-1][3]
        self.assertEqual(kwargs["name"], "Team")
        self.assertEqual(kwargs["metadata"], {"tier": "team"})
        self.assertNotIn("description", kwargs)

    def test_stripe_error_is_reported(self) -> None:
        self.add_project("acme")
        self.sdk.Product.errors["retrieve"] = stripe.InvalidRequestError(
            "No such product: 'prod_x'", "id", code="resource_missing", http_status=404
        )
        rc, out, err = self.run_cli("products", "get", "prod_x")
        self.assertEqual(rc, 1)
        self.assertEqual(out, "")
        self.assertIn("[stripeconf] error: No such product", err)

    def test_price_create_defaults_to_project_currency(self) -> None:
        self.add_project("acme", "--currency", "eur")
        rc, _, _ = self.run_cli("prices", "create", "--product", "prod_1", "--unit-amount", "999", "--interval", "month")
        self.assertEqual(rc, 0)
        kwargs = self.calls[-1][3]
        self.assertEqual(kwargs["currency"], "eur")
        self.assertEqual(kwargs["unit_amount"], 999)
        self.assertEqual(kwargs["recurring"], {"interval": "month"})

    def test_price_archive(self) -> None:
        self.add_project("acme")
        rc, out, _ = self.run_cli("prices", "archive", "price_1")
        self.assertEqual(rc, 0)
        self.assertIn("archived price price_1", out)
        self.assertIs(self.calls[-1][3]["active"], False)

    def test_connect_create_saves_org_id(self) -> None:
        self.add_project("acme")
        rc, _, _ = self.run_cli("connect", "create", "--email", "a@b.test", "--org-id", "org_123")
        self.assertEqual(rc, 0)
        kwargs = self.calls[-1][3]
        self.assertEqual(kwargs["type"], "express")
        self.assertEqual(kwargs["country"], "US")
        self.assertIn("transfers", kwargs["capabilities"])
        self.assertEqual(self.store.get_project("acme").org_id, "org_123")

    def test_connect_link_prints_url(self) -> None:
        self.add_project("acme")
        self.sdk.AccountLink.results["create"] = {"url": "https://connect.stripe.com/setup/e/acct_1"}
        rc, out, _ = self.run_cli(
            "connect",
            "link",
            "acct_1",
            "--refresh-url",
            "https://x.test/refresh",
            "--return-url",
            "https://x.test/return",
        )
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), "https://connect.stripe.com/setup/e/acct_1")

    def test_connect_link_rejects_bad_url(self) -> None:
        self.add_project("acme")
        rc, _, err = self.run_cli("connect", "link", "acct_1", "--refresh-url", "nope", "--return-url", "https://x.test")
        self.assertEqual(rc, 1)
        self.assertIn("valid URL", err)
        self.assertEqual(self.calls, [])

    def test_webhook_create_uses_default_events_and_prints_secret(self) -> None:
        self.add_project("acme")
        self.sdk.WebhookEndpoint.results["create"] = {"id": "we_1", "url": "https://x.test/hook", "secret": "whsec_abcdef123456"}
        rc, out, _ = self.run_cli("webhooks", "create", "--url", "https://x.test/hook")
        self.assertEqual(rc, 0)
        self.assertIn("created webhook endpoint we_1", out)
        self.assertIn("STRIPE_WEBHOOK_SECRET=whsec_abcdef123456", out)
        kwargs = self.calls[-1][3]
        self.assertEqual(kwargs["enabled_events"], DEFAULT_WEBHOOK_EVENTS)
        self.assertEqual(kwargs["description"], "Webhook for acme")
        self.assertIsNone(self.store.get_project("acme").webhook_secret)

    def test_webhook_create_save_secret(self) -> None:
        self.add_project("acme")
        self.sdk.WebhookEndpoint.results["create"] = {"id": "we_1", "url": "https://x.test/hook", "secret": "whsec_abcdef123456"}
        rc, out, _ = self.run_cli("webhooks", "create", "--url", "https://x.test/hook", "--event", "*", "--save-secret")
        self.assertEqual(rc, 0)
        self.assertNotIn("whsec_abcdef123456", out)
        self.assertEqual(self.calls[-1][3]["enabled_events"], ["*"])
        self.assertEqual(self.store.get_project("acme").webhook_secret, "whsec_abcdef123456")


class TestConnectCommands(_CliCase):
    def _platform(self) -> dict[str, Any]:
        return {
            "id": "acct_platform",
            "business_profile": {"name": "Acme Inc"},
            "country": "US",
            "email": "ops@acme.test",
            "charges_enabled": True,
            "payouts_enabled": False,
        }

    def test_create_with_rejected_account_keeps_project_unchanged(self) -> None:
        self.add_project("acme")
        self.sdk.Account.errors["create"] = stripe.InvalidRequestError(
            "Country is not supported", "country", http_status=400
        )
        rc, _, err = self.run_cli("connect", "create", "--org-id", "org_abc")
        self.assertEqual(rc, 1)
        self.assertIn("Country is not supported", err)
        self.assertIsNone(self.store.get_project("acme").org_id)

    def test_start_reports_platform_and_connected_accounts(self) -> None:
        self.add_project("acme")
        self.sdk.Account.results["retrieve"] = self._platform()
        self.sdk.Account.results["list"] = [
            {"id": f"acct_{i}", "type": "express", "charges_enabled": i % 2 == 0} for i in range(7)
        ]
        rc, out, _ = self.run_cli("connect", "start", "--org-id", "org_abc")
        self.assertEqual(rc, 0)

        retrieve = [c for c in self.calls if c[:2] == ("acct", "retrieve")]
        self.assertEqual(len(retrieve), 1)
        self.assertEqual(retrieve[0][2], ())
        self.assertEqual(retrieve[0][3], {"api_key": "sk_test_x"})

        self.assertIn("platform account: acct_platform", out)
        self.assertIn("business name: Acme Inc", out)
        self.assertIn("charges enabled: yes", out)
        self.assertIn("payouts enabled: no", out)
        self.assertIn("org id: org_abc", out)
        self.assertIn("Connect is ready.", out)
        self.assertIn("connected accounts: 7", out)
        self.assertIn("acct_0 (express) active", out)
        self.assertIn("acct_1 (express) pending", out)
        self.assertNotIn("acct_5", out)
        self.assertIn("... and 2 more", out)
        self.assertEqual(self.store.get_project("acme").org_id, "org_abc")

    def test_start_without_connect_prints_setup_steps(self) -> None:
        self.add_project("acme", "--org-id", "org_known")
        self.sdk.Account.results["retrieve"] = self._platform()
        self.sdk.Account.errors["list"] = stripe.PermissionError("Connect is not enabled", http_status=403)
        rc, out, _ = self.run_cli("connect", "start")
        self.assertEqual(rc, 0)
        self.assertIn("org id: org_known", out)
        self.assertIn("Connect is not enabled", out)
        self.assertIn("https://dashboard.stripe.com/test/settings/connect", out)
        self.assertNotIn("Connect is ready", out)

    def test_start_fails_when_platform_is_unreachable(self) -> None:
        self.add_project("acme")
        self.sdk.Account.errors["retrieve"] = stripe.AuthenticationError("Invalid API Key provided", http_status=401)
        rc, out, err = self.run_cli("connect", "start", "--org-id", "org_abc")
        self.assertEqual(rc, 1)
        self.assertEqual(out, "")
        self.assertIn("could not access the platform account", err)

    def test_full_setup_creates_account_and_webhook(self) -> None:
        self.add_project("acme", "--secret-key", "sk_test_acme", "--publishable-key", "pk_test_acme")
        self.sdk.Account.results["create"] = {"id": "acct_new", "type": "express", "country": "DE"}
        self.sdk.WebhookEndpoint.results["create"] = {
            "id": "we_new",
            "url": "https://app.test/hooks",
            "secret": "whsec_abcdef123456",
        }
        rc, out, _ = self.run_cli(
            "connect",
            "full-setup",
            "--name",
            "CoinPay",
            "--url",
            "https://app.test/hooks",
            "--country",
            "de",
            "--org-id",
            "org_abc",
            "--save-secret",
            "--json",
        )
        self.assertEqual(rc, 0)

        acct_kwargs = [c for c in self.calls if c[:2] == ("acct", "create")][0][3]
        self.assertEqual(acct_kwargs["country"], "DE")
        self.assertEqual(acct_kwargs["metadata"], {"name": "CoinPay", "org_id": "org_abc"})
        self.assertIn("card_payments", acct_kwargs["capabilities"])

        we_kwargs = [c for c in self.calls if c[:2] == ("we", "create")][0][3]
        self.assertEqual(we_kwargs["metadata"], {"account_name": "CoinPay", "connected_account": "acct_new"})
        self.assertEqual(we_kwargs["description"], "Webhook for CoinPay")
        self.assertEqual(we_kwargs["enabled_events"], DEFAULT_WEBHOOK_EVENTS)

        summary = json.loads(out)
        self.assertEqual(summary["connected_account"]["id"], "acct_new")
        self.assertEqual(summary["connected_account"]["name"], "CoinPay")
        self.assertEqual(summary["webhook"]["secret"], "whsec_abcdef123456")
        self.assertEqual(
            summary["env"],
            {
                "STRIPE_SECRET_KEY": "sk_test_acme",
                "STRIPE_PUBLISHABLE_KEY": "pk_test_acme",
                "NEXT_PUBLIC_STRIPE_PUBLISHABLE_KEY": "pk_test_acme",
                "STRIPE_WEBHOOK_SECRET": "whsec_abcdef123456",
                "STRIPE_CONNECTED_ACCOUNT_ID": "acct_new",
                "STRIPE_ORG_ID": "org_abc",
            },
        )
        project = self.store.get_project("acme")
        self.assertEqual(project.org_id, "org_abc")
        self.assertEqual(project.webhook_secret, "whsec_abcdef123456")

    def test_full_setup_prints_env_block(self) -> None:
        self.add_project("acme")
        self.sdk.Account.results["create"] = {"id": "acct_new", "type": "express"}
        self.sdk.WebhookEndpoint.results["create"] = {"id": "we_new", "url": "https://app.test/hooks", "secret": "whsec_zz"}
        rc, out, _ = self.run_cli("connect", "full-setup", "--name", "CoinPay", "--url", "https://app.test/hooks", "--event", "*")
        self.assertEqual(rc, 0)
        self.assertIn("STRIPE_CONNECTED_ACCOUNT_ID=acct_new", out)
        self.assertIn("STRIPE_WEBHOOK_SECRET=whsec_zz", out)
        self.assertNotIn("STRIPE_ORG_ID", out)
        self.assertEqual([c for c in self.calls if c[:2] == ("we", "create")][0][3]["enabled_events"], ["*"])
        self.assertIsNone(self.store.get_project("acme").webhook_secret)

    def test_full_setup_with_rejected_account_saves_nothing(self) -> None:
        self.add_project("acme")
        self.sdk.Account.errors["create"] = stripe.InvalidRequestError("Invalid country", "country", http_status=400)
        rc, _, _ = self.run_cli(
            "connect", "full-setup", "--name", "CoinPay", "--url", "https://app.test/hooks", "--org-id", "org_abc"
        )
        self.assertEqual(rc, 1)
        self.assertIsNone(self.store.get_project("acme").org_id)
        self.assertEqual([c for c in self.calls if c[0] == "we"], [])

    def test_full_setup_validates_before_calling_stripe(self) -> None:
        self.add_project("acme")
        rc, _, err = self.run_cli("connect", "full-setup", "--name", "CoinPay", "--url", "https://x.test", "--country", "USA")
        self.assertEqual(rc, 1)
        self.assertIn("2-letter", err)
        self.assertEqual(self.calls, [])


class TestPromptValue(unittest.TestCase):
    def _ask(self, stdin_text: str) -> tuple[Any, str]:
        err = io.StringIO()
        with mock.patch.object(sys, "stdin", io.StringIO(stdin_text)), redirect_stderr(err):
            value = prompt_value("Currency:", validate_currency)
        return value, err.getvalue()

    def test_retries_until_valid(self) -> None:
        value, err = self._ask("dollars\nEUR\n")
        self.assertEqual(value, "eur")
        self.assertEqual(err.count("3-letter"), 1)

    def test_gives_up_after_three_invalid_answers(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self._ask("a\nb\nc\nusd\n")
        self.assertEqual(ctx.exception.field, "currency")

    def test_empty_answer_uses_default(self) -> None:
        err = io.StringIO()
        with mock.patch.object(sys, "stdin", io.StringIO("\n")), redirect_stderr(err):
            value = prompt_value("Currency [usd]:", validate_currency, default="usd")
        self.assertEqual(value, "usd")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

from typing import Any


def _add_project_fields(p: Any, *, for_update: bool) -> None:
    env_help = "Stripe environment." if for_update else "Stripe environment (default: test)."
    p.add_argument("--environment", choices=["test", "live"], default=None, help=env_help)
    p.add_argument("--publishable-key", default=None, help="Publishable key (pk_...).")
    p.add_argument("--secret-key", default=None, help="Secret key (sk_...).")
    p.add_argument("--webhook-secret", default=None, help="Webhook signing secret (whsec_...). Pass '' to clear on update.")
    p.add_argument("--currency", dest="default_currency", default=None, help="Default 3-letter currency code (e.g. usd).")
    p.add_argument("--org-id", default=None, help="Stripe organization id (org_...). Pass '' to clear on update.")


def add_general_subparsers(*, sub: Any) -> None:
    sub.add_parser("version", help="Print stripeconf version.")

    p_cfg = sub.add_parser("config", help="Inspect the local config document.")
    cfg_sub = p_cfg.add_subparsers(dest="config_cmd", required=True)
    cfg_sub.add_parser("path", help="Print the config.json path.")
    cfg_sub.add_parser("show", help="Show the config document as JSON (credentials masked).")

    p_setup = sub.add_parser("setup", help="Configure a new Stripe project (prompts for missing values).")
    p_setup.add_argument("--name", default=None, help="Project name.")
    _add_project_fields(p_setup, for_update=False)
    p_setup.add_argument("--no-verify", action="store_true", help="Do not check the keys against the Stripe API before saving.")

    p_proj = sub.add_parser("project", help="Manage configured projects.")
    proj_sub = p_proj.add_subparsers(dest="project_cmd", required=True)

    p_pa = proj_sub.add_parser("add", help="Add a project (non-interactive; all required fields as flags).")
    p_pa.add_argument("name", help="Project name (unique).")
    _add_project_fields(p_pa, for_update=False)

    p_pl = proj_sub.add_parser("list", help="List projects.")
    p_pl.add_argument("--json", action="store_true", help="Print as JSON (credentials masked).")

    p_ps = proj_sub.add_parser("show", help="Show one project (credentials masked).")
    p_ps.add_argument("name", nargs="?", default=None, help="Project name (default: the default project).")
    p_ps.add_argument("--json", action="store_true", help="Print as JSON.")

    p_pu = proj_sub.add_parser("update", help="Update a project's mutable fields.")
    p_pu.add_argument("name", help="Project name.")
    _add_project_fields(p_pu, for_update=True)

    p_pr = proj_sub.add_parser("remove", help="Delete a project.")
    p_pr.add_argument("name", help="Project name.")

    p_pd = proj_sub.add_parser("use", help="Set the default project.")
    p_pd.add_argument("name", help="Project name.")

    p_pdef = proj_sub.add_parser("default", help="Show the default project.")
    p_pdef.add_argument("--json", action="store_true", help="Print as JSON.")

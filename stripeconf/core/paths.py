from __future__ import annotations

import os
from pathlib import Path


CONFIG_FILENAME = "config.json"


def default_home_dir() -> Path:
    return Path(os.environ.get("STRIPECONF_HOME") or Path.home() / ".config" / "stripeconf")


def config_path(home_dir: Path) -> Path:
    return home_dir / CONFIG_FILENAME


def resolve_config_path(*, home: str | None = None, config: str | None = None) -> Path:
    """Resolve the config document path for CLI handlers.

    Resolution order:
    1) Explicit `--config` (or $STRIPECONF_CONFIG)
    2) `<home>/config.json` where home is `--home`, $STRIPECONF_HOME, or ~/.config/stripeconf
    """

    cfg_s = str(config or os.environ.get("STRIPECONF_CONFIG") or "").strip()
    if cfg_s:
        return Path(cfg_s).expanduser()
    home_s = str(home or "").strip()
    home_dir = Path(home_s).expanduser() if home_s else default_home_dir()
    return config_path(home_dir)

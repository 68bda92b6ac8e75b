from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def ensure_dir(path: Path, *, mode: int | None = None) -> None:
    """Create `path` (and parents) if missing; apply `mode` only when newly created."""

    if path.is_dir():
        return
    path.mkdir(parents=True, exist_ok=True)
    if mode is not None:
        os.chmod(path, mode)


def dump_json(obj: Any) -> str:
    # Stable key order so a load/save cycle is byte-identical.
    return json.dumps(obj, indent=2, sort_keys=True) + "\n"


def read_json(path: Path, default: Any = None) -> Any:
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return default
    return json.loads(data)


def now_iso() -> str:
    """UTC timestamp with millisecond precision, e.g. 2026-02-22T12:34:56.789Z."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def atomic_write_text(path: Path, text: str, *, mode: int | None = None) -> None:
    """Write `text` to `path` via temp file + replace (best-effort, no fsync).

    When `mode` is given the temp file is created with it (and re-applied after
    the replace), so the content never exists on disk with looser permissions.
    """

    tmp = path.with_suffix(path.suffix + f".tmp.{os.getpid()}")
    try:
        if mode is None:
            tmp.write_text(text, encoding="utf-8")
        else:
            # Stale temp from a crashed writer with the same pid.
            tmp.unlink(missing_ok=True)
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
        tmp.replace(path)
    except BaseException:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        raise
    if mode is not None:
        os.chmod(path, mode)


def atomic_write_json(path: Path, obj: Any, *, mode: int | None = None) -> None:
    atomic_write_text(path, dump_json(obj), mode=mode)

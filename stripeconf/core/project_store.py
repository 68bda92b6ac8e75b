"""Local project configuration store.

A single JSON document (default: ~/.config/stripeconf/config.json) lists named
Stripe credential sets ("projects") plus an optional default-project pointer.

Every operation loads the full document, mutates an in-memory copy and writes
the full document back. There is no locking: two processes editing the same
file at once are last-writer-wins.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .schema_validate import load_schema, validate_json_schema
from .storage import atomic_write_json, ensure_dir, now_iso, read_json


CONFIG_VERSION = "1.0.0"
ENVIRONMENTS = ("test", "live")

_DIR_MODE = 0o700
_FILE_MODE = 0o600
_SCHEMA = "config.json"
_MISSING = object()

# Python attribute -> JSON key (the on-disk shape is camelCase).
_JSON_KEYS: dict[str, str] = {
    "id": "id",
    "name": "name",
    "environment": "environment",
    "publishable_key": "publishableKey",
    "secret_key": "secretKey",
    "webhook_secret": "webhookSecret",
    "default_currency": "defaultCurrency",
    "org_id": "orgId",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

MUTABLE_FIELDS = frozenset(
    {"environment", "publishable_key", "secret_key", "webhook_secret", "default_currency", "org_id"}
)
PROTECTED_FIELDS = frozenset({"id", "name", "created_at", "updated_at"})


def new_project_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ProjectDraft:
    """A project as entered by the user, before id/timestamps are assigned."""

    name: str
    environment: str
    publishable_key: str
    secret_key: str
    default_currency: str
    webhook_secret: str | None = None
    org_id: str | None = None


@dataclass(frozen=True)
class ProjectRecord:
    id: str
    name: str
    environment: str
    publishable_key: str
    secret_key: str
    default_currency: str
    created_at: str
    updated_at: str
    webhook_secret: str | None = None
    org_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        # Optional fields are omitted rather than written as null.
        return {key: getattr(self, attr) for attr, key in _JSON_KEYS.items() if getattr(self, attr) is not None}

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> ProjectRecord:
        return cls(**{attr: obj[key] for attr, key in _JSON_KEYS.items() if key in obj})


@dataclass
class ConfigDocument:
    version: str = CONFIG_VERSION
    projects: list[ProjectRecord] = field(default_factory=list)
    default_project: str | None = None

    def index_of(self, name: str) -> int | None:
        for i, p in enumerate(self.projects):
            if p.name == name:
                return i
        return None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "version": self.version,
            "projects": [p.to_dict() for p in self.projects],
        }
        if self.default_project is not None:
            out["defaultProject"] = self.default_project
        return out

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> ConfigDocument:
        return cls(
            version=obj["version"],
            projects=[ProjectRecord.from_dict(p) for p in obj["projects"]],
            default_project=obj.get("defaultProject"),
        )


@dataclass(frozen=True)
class LoadResult:
    """Outcome of reading the config document.

    - success: `document` is set; `missing=True` means no file existed yet and
      `document` is the empty default.
    - error: `error` carries a message (and `cause` the underlying exception, if any).
    """

    document: ConfigDocument | None
    missing: bool = False
    error: str = ""
    cause: BaseException | None = None

    @property
    def ok(self) -> bool:
        return not self.error


def _document_errors(raw: Any) -> list[str]:
    errors = validate_json_schema(raw, load_schema(_SCHEMA))
    if errors:
        return errors
    seen: set[str] = set()
    for i, p in enumerate(raw["projects"]):
        name = p["name"]
        if name in seen:
            errors.append(f"$.projects[{i}].name: duplicate project name {name!r}")
        seen.add(name)
    return errors


def read_config_document(path: Path) -> LoadResult:
    """Read and validate the config document at `path` without raising."""

    try:
        raw = read_json(path, _MISSING)
    except (OSError, UnicodeDecodeError) as e:
        return LoadResult(document=None, error=f"Failed to load config: {e}", cause=e)
    except ValueError as e:
        return LoadResult(document=None, error=f"Invalid JSON in config file: {path}", cause=e)
    if raw is _MISSING:
        return LoadResult(document=ConfigDocument(), missing=True)

    errors = _document_errors(raw)
    if errors:
        return LoadResult(document=None, error=f"Invalid config file {path}: " + "; ".join(errors[:5]))
    return LoadResult(document=ConfigDocument.from_dict(raw))


@dataclass(frozen=True)
class ProjectStore:
    """CRUD over the project list stored in one JSON document."""

    config_path: Path

    def load_config(self) -> ConfigDocument:
        res = read_config_document(self.config_path)
        if not res.ok or res.document is None:
            raise ConfigError(res.error) from res.cause
        return res.document

    def save_config(self, doc: ConfigDocument) -> None:
        data = doc.to_dict()
        data["version"] = CONFIG_VERSION
        errors = _document_errors(data)
        if errors:
            raise ConfigError("Refusing to save invalid config: " + "; ".join(errors[:5]))
        try:
            ensure_dir(self.config_path.parent, mode=_DIR_MODE)
            atomic_write_json(self.config_path, data, mode=_FILE_MODE)
        except OSError as e:
            raise ConfigError(f"Failed to save config: {e}") from e

    def _require_index(self, doc: ConfigDocument, name: str) -> int:
        idx = doc.index_of(name)
        if idx is None:
            raise ConfigError(f'Project "{name}" not found')
        return idx

    def add_project(self, draft: ProjectDraft) -> ProjectRecord:
        doc = self.load_config()
        if doc.index_of(draft.name) is not None:
            raise ConfigError(f'Project with name "{draft.name}" already exists')

        now = now_iso()
        record = ProjectRecord(
            id=new_project_id(),
            name=draft.name,
            environment=draft.environment,
            publishable_key=draft.publishable_key,
            secret_key=draft.secret_key,
            default_currency=draft.default_currency,
            webhook_secret=draft.webhook_secret,
            org_id=draft.org_id,
            created_at=now,
            updated_at=now,
        )
        doc.projects.append(record)
        if len(doc.projects) == 1:
            doc.default_project = record.name

        self.save_config(doc)
        return record

    def get_project(self, name: str) -> ProjectRecord:
        doc = self.load_config()
        return doc.projects[self._require_index(doc, name)]

    def list_projects(self) -> list[ProjectRecord]:
        return list(self.load_config().projects)

    def update_project(self, name: str, **updates: Any) -> ProjectRecord:
        """Merge `updates` (snake_case field names) over the named project.

        `id`, `name`, `created_at` and `updated_at` cannot be updated; passing
        any of them (or an unknown field) raises ConfigError without writing.
        A value of None clears an optional field (webhook_secret, org_id).
        """

        protected = sorted(k for k in updates if k in PROTECTED_FIELDS)
        if protected:
            raise ConfigError(f"Cannot update protected field(s): {', '.join(protected)}")
        unknown = sorted(k for k in updates if k not in MUTABLE_FIELDS)
        if unknown:
            raise ConfigError(f"Unknown project field(s): {', '.join(unknown)}")

        doc = self.load_config()
        idx = self._require_index(doc, name)
        current = doc.projects[idx]
        # Never move backwards, even if the wall clock does.
        updated_at = max(now_iso(), current.updated_at)
        updated = replace(current, **updates, updated_at=updated_at)
        doc.projects[idx] = updated

        self.save_config(doc)
        return updated

    def delete_project(self, name: str) -> None:
        doc = self.load_config()
        idx = self._require_index(doc, name)
        del doc.projects[idx]
        if doc.default_project == name:
            doc.default_project = None
        self.save_config(doc)

    def set_default_project(self, name: str) -> None:
        doc = self.load_config()
        self._require_index(doc, name)
        doc.default_project = name
        self.save_config(doc)

    def get_default_project(self) -> ProjectRecord:
        doc = self.load_config()
        if not doc.default_project:
            raise ConfigError('No default project set. Use "stripeconf project use <name>" to set one.')
        return doc.projects[self._require_index(doc, doc.default_project)]

    def resolve_project(self, name: str | None = None) -> ProjectRecord:
        """Return the named project, or the default one when no name is given."""

        if name:
            return self.get_project(name)
        return self.get_default_project()

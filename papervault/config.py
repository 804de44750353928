"""Configuration management.

One ``Settings`` object per process. ``Settings.load()`` builds it on the
first call and hands back that same object afterwards; ``Settings.reload()``
throws it away and reads the files again.

Everything a user edits sits in ``.metadata/settings.yaml``: the SQLite
path, log level, API bind address and the object storage backend. A fresh
checkout gets that file seeded from ``.metadata.example/``.

Environment variables win over the file:

* ``PAPERVAULT_DB_PATH``
* ``PAPERVAULT_STORAGE_ROOT``
* ``PAPERVAULT_LOG_LEVEL``

Settings only say *where* things live. The repository and object store are
built from them by the caller (``api.app.build_service``).
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.yaml"
METADATA_DIR = ".metadata"
EXAMPLE_DIR = ".metadata.example"

STORAGE_BACKENDS = ("local", "s3")


@dataclass
class StorageSettings:
    """Which object store to use and how to reach it."""

    backend: str = "local"
    root: Path = Path("objects")
    public_base_url: Optional[str] = None
    prefix: str = "papers"
    # s3 backend
    bucket: Optional[str] = None
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    public_read: bool = True


class _Singleton(type):
    """Metaclass caching the first instance of each class it creates."""

    _instances: dict[type, Any] = {}

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        instance = cls._instances.get(cls)
        if instance is None:
            instance = super().__call__(*args, **kwargs)
            cls._instances[cls] = instance
        return instance


@dataclass
class Settings(metaclass=_Singleton):
    """Process-wide application settings.

    Example::

        settings = Settings.load()              # read .metadata/settings.yaml
        settings.update(log_level="DEBUG")      # change a value in place
        settings = Settings.reload()            # start over from disk
    """

    db_path: Path = Path("papers.db")
    metadata_dir: Path = Path(METADATA_DIR)
    log_level: str = "INFO"
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    storage: StorageSettings = field(default_factory=StorageSettings)

    def update(self, **kwargs: Any) -> None:
        """Set existing fields; unknown names raise ``AttributeError``."""
        unknown = [name for name in kwargs if not hasattr(self, name)]
        if unknown:
            raise AttributeError(f"Settings has no field(s): {', '.join(unknown)}")
        for name, value in kwargs.items():
            setattr(self, name, value)

    @classmethod
    def load(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Return the process settings, reading them from disk the first time.

        Args:
            base_dir: Project root holding ``.metadata/`` (defaults to the
                directory above the ``papervault`` package). Relative paths
                in the file are resolved against it.
        """
        current = _Singleton._instances.get(cls)
        if current is not None:
            return current

        base_dir = Path(base_dir) if base_dir else Path(__file__).resolve().parent.parent
        metadata_dir = base_dir / METADATA_DIR
        _seed_metadata_dir(base_dir / EXAMPLE_DIR, metadata_dir)

        data = _load_yaml(metadata_dir / SETTINGS_FILE)
        _apply_env(data)
        api = data.get("api") or {}

        return cls(
            db_path=_resolve(base_dir, Path(data.get("db_path") or "papers.db")),
            metadata_dir=metadata_dir,
            log_level=str(data.get("log_level") or "INFO").upper(),
            api_host=str(api.get("host", "127.0.0.1")),
            api_port=int(api.get("port", 8000)),
            storage=_parse_storage(data.get("storage") or {}, base_dir),
        )

    @classmethod
    def reload(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Drop the cached settings and load them again."""
        cls.reset()
        return cls.load(base_dir)

    @classmethod
    def reset(cls) -> None:
        """Forget the cached settings (the next ``load()`` reads from disk)."""
        _Singleton._instances.pop(cls, None)


# ---------------------------------------------------------------------------
# File handling
# ---------------------------------------------------------------------------

def _seed_metadata_dir(example_dir: Path, metadata_dir: Path) -> None:
    """Create ``metadata_dir`` and copy in any template file it lacks."""
    metadata_dir.mkdir(parents=True, exist_ok=True)
    if not example_dir.is_dir():
        return
    for template in example_dir.iterdir():
        target = metadata_dir / template.name
        if template.is_file() and not target.exists():
            shutil.copy2(template, target)
            logger.info("Seeded %s from %s", target, example_dir.name)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping; a missing or malformed file yields ``{}``."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", path)
        return {}
    return data


def _apply_env(data: dict[str, Any]) -> None:
    """Overlay the ``PAPERVAULT_*`` environment variables onto *data*."""
    env = {
        "PAPERVAULT_DB_PATH": ("db_path",),
        "PAPERVAULT_LOG_LEVEL": ("log_level",),
        "PAPERVAULT_STORAGE_ROOT": ("storage", "root"),
    }
    for var, path in env.items():
        value = os.getenv(var)
        if not value:
            continue
        section = data
        for key in path[:-1]:
            if not isinstance(section.get(key), dict):
                section[key] = {}
            section = section[key]
        section[path[-1]] = value


def _resolve(base_dir: Path, path: Path) -> Path:
    return path if path.is_absolute() else base_dir / path


def _parse_storage(raw: dict[str, Any], base_dir: Path) -> StorageSettings:
    """Build :class:`StorageSettings` from the ``storage:`` section."""
    backend = str(raw.get("backend") or "local").lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(f"Unknown storage backend: {backend!r}")
    return StorageSettings(
        backend=backend,
        root=_resolve(base_dir, Path(raw.get("root") or "objects")),
        public_base_url=raw.get("public_base_url") or None,
        prefix=str(raw.get("prefix", "papers")),
        bucket=raw.get("bucket") or None,
        region=str(raw.get("region") or "us-east-1"),
        endpoint_url=raw.get("endpoint_url") or None,
        public_read=bool(raw.get("public_read", True)),
    )


def save_settings(path: Path, settings: Settings) -> None:
    """Write *settings* back out as ``settings.yaml``."""
    storage = settings.storage
    document = {
        "db_path": str(settings.db_path),
        "log_level": settings.log_level,
        "api": {"host": settings.api_host, "port": settings.api_port},
        "storage": {
            "backend": storage.backend,
            "root": str(storage.root),
            "public_base_url": storage.public_base_url,
            "prefix": storage.prefix,
            "bucket": storage.bucket,
            "region": storage.region,
            "endpoint_url": storage.endpoint_url,
            "public_read": storage.public_read,
        },
    }
    header = "# PaperVault settings\n# storage.backend: local (directory) or s3\n\n"
    path.write_text(
        header + yaml.safe_dump(document, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )

"""Configuration module — frozen dataclass loaded from YAML and environment variables.

Precedence, lowest first: dataclass defaults, YAML file, environment variables.
The CLI applies its own flags on top with ``dataclasses.replace``.
"""

import os
from dataclasses import dataclass, fields, replace

import yaml
from sqlalchemy.engine import URL

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_DATABASE_URL = "sqlite:///flows.db"

_ENV_VARS = {
    "database_url": "DATABASE_URL",
    "db_user": "DB_USER",
    "db_pass": "DB_PASS",
    "db_host": "DB_HOST",
    "db_port": "DB_PORT",
    "db_name": "DB_NAME",
    "log_level": "LOG_LEVEL",
    "echo_sql": "ECHO_SQL",
}


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    database_url: str | None = None
    db_user: str | None = None
    db_pass: str | None = None
    db_host: str | None = None
    db_port: int = 5432
    db_name: str | None = None
    log_level: str = "INFO"
    echo_sql: bool = False

    def resolve_database_url(self) -> str:
        """Return the SQLAlchemy URL to connect to.

        An explicit ``database_url`` wins. Otherwise a PostgreSQL URL is built
        from the ``db_*`` fields when ``db_host`` is set, and SQLite is used
        as a last resort.
        """
        if self.database_url:
            return self.database_url
        if self.db_host:
            url = URL.create(
                "postgresql+psycopg",
                username=self.db_user,
                password=self.db_pass,
                host=self.db_host,
                port=self.db_port,
                database=self.db_name,
            )
            return url.render_as_string(hide_password=False)
        return DEFAULT_DATABASE_URL


def load_yaml(path: str) -> dict:
    """Load a YAML mapping from *path*. An empty file yields an empty dict."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def _coerce(values: dict) -> dict:
    known = {f.name for f in fields(Config)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown config key(s): {', '.join(unknown)}")

    out = dict(values)
    if "db_port" in out:
        out["db_port"] = int(out["db_port"])
    if "echo_sql" in out:
        out["echo_sql"] = _parse_bool(out["echo_sql"])
    if "log_level" in out:
        level = str(out["log_level"]).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level {out['log_level']!r}; expected one of {LOG_LEVELS}")
        out["log_level"] = level
    return out


def load_config(path: str | None = None) -> Config:
    """Build Config from an optional YAML file and environment variables.

    The YAML path defaults to the ``CONFIG_PATH`` environment variable. Raises
    ValueError for unknown keys or an invalid log level.
    """
    path = path or os.environ.get("CONFIG_PATH")
    values: dict = {}
    if path:
        values.update(load_yaml(path))

    for name, env_var in _ENV_VARS.items():
        raw = os.environ.get(env_var)
        if raw is not None:
            values[name] = raw

    return Config(**_coerce(values))


def with_overrides(config: Config, **overrides) -> Config:
    """Return a copy of *config* with every non-None override applied."""
    values = {k: v for k, v in overrides.items() if v is not None}
    return replace(config, **_coerce(values))

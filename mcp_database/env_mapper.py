"""
Maps unified DATABASE_* variables onto the per-dialect names the toolbox reads.

Precedence, highest first:
  1. a dialect-specific variable that is already set (e.g. POSTGRES_HOST)
  2. the unified variable (e.g. DATABASE_HOST), copied down when 1 is unset
  3. nothing: the toolbox applies its own default
"""

from typing import Dict, List, Mapping, Optional, Tuple

UNIFIED_DB_ENV: Dict[str, str] = {
    "host": "DATABASE_HOST",
    "port": "DATABASE_PORT",
    "database": "DATABASE_NAME",
    "user": "DATABASE_USER",
    "password": "DATABASE_PASSWORD",
}

FIELD_SUFFIXES: Dict[str, str] = {
    "host": "HOST",
    "port": "PORT",
    "database": "DATABASE",
    "user": "USER",
    "password": "PASSWORD",
}

ALL_FIELDS: Tuple[str, ...] = ("host", "port", "database", "user", "password")
CLOUD_FIELDS: Tuple[str, ...] = ("database", "user", "password")

# kind -> (variable prefix, connection fields the toolbox reads for it)
DIALECT_ENV: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "postgres": ("POSTGRES", ALL_FIELDS),
    "mysql": ("MYSQL", ALL_FIELDS),
    "mssql": ("MSSQL", ALL_FIELDS),
    "mongodb": ("MONGODB", ALL_FIELDS),
    "sqlite": ("SQLITE", ("database",)),
    "redis": ("REDIS", ("host", "port", "password")),
    "cloud-sql-postgres": ("CLOUD_SQL_POSTGRES", CLOUD_FIELDS),
    "cloud-sql-mysql": ("CLOUD_SQL_MYSQL", CLOUD_FIELDS),
    "alloydb-pg": ("ALLOYDB_POSTGRES", CLOUD_FIELDS),
}


def connection_fields(kind: str) -> Tuple[str, ...]:
    """Connection fields the toolbox understands for this kind."""
    entry = DIALECT_ENV.get(kind)
    return entry[1] if entry else ()


def dialect_variable(kind: str, field: str) -> Optional[str]:
    """Dialect-specific variable name for a field, e.g. ('postgres', 'host') -> POSTGRES_HOST."""
    entry = DIALECT_ENV.get(kind)
    if not entry or field not in entry[1]:
        return None
    return f"{entry[0]}_{FIELD_SUFFIXES[field]}"


def lookup_connection_value(kind: str, field: str, env: Mapping[str, str]) -> Optional[str]:
    """Value for a connection field following the precedence rules, or None if unset."""
    specific = dialect_variable(kind, field)
    if specific and specific in env:
        return env[specific]
    unified = UNIFIED_DB_ENV[field]
    if unified in env:
        return env[unified]
    return None


def dialect_overrides(kind: str, env: Mapping[str, str]) -> Dict[str, str]:
    """Variables to add so the toolbox sees unified settings under its own names."""
    overrides = {}
    for field in connection_fields(kind):
        specific = dialect_variable(kind, field)
        unified = UNIFIED_DB_ENV[field]
        if specific not in env and unified in env:
            overrides[specific] = env[unified]
    return overrides


def build_child_environment(kind: Optional[str], env: Mapping[str, str]) -> Dict[str, str]:
    """
    Environment for the toolbox process.

    Returns a new mapping; the input is never modified.
    """
    child_env = dict(env)
    if kind:
        child_env.update(dialect_overrides(kind, env))
    return child_env


def apply_cli_overrides(
    env: Mapping[str, str],
    kind: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[str] = None,
    database: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
) -> Dict[str, str]:
    """
    Copy of env with the unified DATABASE_* variables set from CLI flags.

    When kind is given the dialect-specific variable is set too, so a flag
    also wins over an inherited POSTGRES_HOST and the like.
    """
    values = {"host": host, "port": port, "database": database, "user": user, "password": password}
    updated = dict(env)
    for field, value in values.items():
        if value is None:
            continue
        updated[UNIFIED_DB_ENV[field]] = str(value)
        specific = dialect_variable(kind, field) if kind else None
        if specific:
            updated[specific] = str(value)
    return updated


def describe_variables(kind: str) -> List[str]:
    """Dialect-specific variable names for help output."""
    return [dialect_variable(kind, field) for field in connection_fields(kind)]

"""
Configuration management for mcp-database.

Loads tools.yaml files (with ${VAR} / ${VAR:default} substitution) and
synthesizes single-source configs for --prebuilt database types.
"""

import logging
import re
from typing import Any, Dict, Iterator, List, Mapping, Union

import yaml

from .builtin_tools import builtin_tool_names
from .env_mapper import connection_fields, lookup_connection_value
from .errors import ConfigError
from .models import PrebuiltDatabase, ToolsConfig

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$\{([^:}]+)(?::([^}]*))?\}")

# Extra source fields for cloud-hosted databases: field -> candidate variables
CLOUD_SOURCE_ENV: Dict[PrebuiltDatabase, Dict[str, List[str]]] = {
    PrebuiltDatabase.CLOUD_SQL_POSTGRES: {
        "project": ["GCP_PROJECT"],
        "region": ["GCP_REGION"],
        "instance": ["CLOUD_SQL_INSTANCE"],
    },
    PrebuiltDatabase.CLOUD_SQL_MYSQL: {
        "project": ["GCP_PROJECT"],
        "region": ["GCP_REGION"],
        "instance": ["CLOUD_SQL_INSTANCE"],
    },
    PrebuiltDatabase.ALLOYDB_PG: {
        "project": ["GCP_PROJECT"],
        "region": ["GCP_REGION"],
        "cluster": ["ALLOYDB_CLUSTER"],
        "instance": ["ALLOYDB_INSTANCE"],
    },
    PrebuiltDatabase.BIGQUERY: {
        "project": ["GCP_PROJECT"],
        "dataset": ["BIGQUERY_DATASET"],
    },
    PrebuiltDatabase.SPANNER: {
        "project": ["GCP_PROJECT"],
        "instance": ["SPANNER_INSTANCE"],
        "database": ["SPANNER_DATABASE"],
    },
    PrebuiltDatabase.FIRESTORE: {
        "project": ["GCP_PROJECT"],
        "database": ["FIRESTORE_DATABASE"],
    },
}

REQUIRED_PREBUILT_ENV: Dict[PrebuiltDatabase, List[str]] = {
    PrebuiltDatabase.CLOUD_SQL_POSTGRES: ["GCP_PROJECT", "CLOUD_SQL_INSTANCE"],
    PrebuiltDatabase.CLOUD_SQL_MYSQL: ["GCP_PROJECT", "CLOUD_SQL_INSTANCE"],
    PrebuiltDatabase.ALLOYDB_PG: ["GCP_PROJECT", "ALLOYDB_CLUSTER", "ALLOYDB_INSTANCE"],
    PrebuiltDatabase.BIGQUERY: ["GCP_PROJECT"],
    PrebuiltDatabase.SPANNER: ["GCP_PROJECT", "SPANNER_INSTANCE", "SPANNER_DATABASE"],
    PrebuiltDatabase.FIRESTORE: ["GCP_PROJECT"],
}

SECRET_FIELDS = {"password"}


def substitute_env_vars(value: Any, env: Mapping[str, str]) -> Any:
    """
    Recursively replace ${VAR} and ${VAR:default} in every string leaf.

    Unset variables resolve to the default, or to an empty string when no
    default is given. Never fails.
    """
    if isinstance(value, str):
        return ENV_VAR_PATTERN.sub(
            lambda match: env.get(match.group(1), match.group(2) if match.group(2) is not None else ""),
            value,
        )
    if isinstance(value, list):
        return [substitute_env_vars(item, env) for item in value]
    if isinstance(value, dict):
        return {key: substitute_env_vars(item, env) for key, item in value.items()}
    return value


def _string_leaves(value: Any) -> Iterator[str]:
    if isinstance(value, str):
        yield value
    elif isinstance(value, list):
        for item in value:
            yield from _string_leaves(item)
    elif isinstance(value, dict):
        for item in value.values():
            yield from _string_leaves(item)


def _is_malformed(text: str) -> bool:
    # a default may not itself contain a reference
    if any("${" in (match.group(2) or "") for match in ENV_VAR_PATTERN.finditer(text)):
        return True
    return "${" in ENV_VAR_PATTERN.sub("", text)


def find_malformed_references(document: Any) -> List[str]:
    """String leaves containing a '${' that does not form a valid reference."""
    return [text for text in _string_leaves(document) if _is_malformed(text)]


def parse_config(text: str, env: Mapping[str, str], origin: str = "<string>") -> ToolsConfig:
    """Parse tools.yaml content into a validated, substituted config."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config from {origin}: {e}") from e

    if document is None:
        raise ConfigError(f"Config from {origin} is empty")

    malformed = find_malformed_references(document)
    if malformed:
        raise ConfigError(f"Malformed variable reference in {origin}: {malformed[0]!r}")

    config = ToolsConfig.from_document(substitute_env_vars(document, env))
    _reject_builtin_collisions(config)
    return config


def load_config(config_path: str, env: Mapping[str, str]) -> ToolsConfig:
    """Load a tools.yaml file and replace environment variable references."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise ConfigError(f"Failed to load config from {config_path}: {e}") from e
    return parse_config(text, env, origin=config_path)


def _reject_builtin_collisions(config: ToolsConfig):
    reserved = set(builtin_tool_names())
    clashes = sorted(name for name in (config.tools or {}) if name in reserved)
    if clashes:
        raise ConfigError(
            f"Tool name(s) {', '.join(clashes)} collide with built-in tools; rename them"
        )


def _coerce_port(value: str) -> Union[int, str]:
    return int(value) if value.strip().isdigit() else value


def generate_prebuilt_config(db_type: Union[str, PrebuiltDatabase], env: Mapping[str, str]) -> ToolsConfig:
    """
    Build a single-source config for a prebuilt database type.

    A field is present only when its environment variable is set; nothing is
    defaulted here so the toolbox's own defaults and validation apply.
    """
    db_type = parse_prebuilt(db_type)
    source: Dict[str, Any] = {"kind": db_type.value}

    for field in connection_fields(db_type.value):
        value = lookup_connection_value(db_type.value, field, env)
        if value is not None:
            source[field] = _coerce_port(value) if field == "port" else value

    for field, variables in CLOUD_SOURCE_ENV.get(db_type, {}).items():
        for variable in variables:
            if variable in env:
                source[field] = env[variable]
                break

    return ToolsConfig.from_document({"sources": {f"{db_type.value}-db": source}})


def validate_prebuilt_env(db_type: Union[str, PrebuiltDatabase], env: Mapping[str, str]):
    """Ensure variables required by a cloud prebuilt type are set."""
    db_type = parse_prebuilt(db_type)
    missing = [name for name in REQUIRED_PREBUILT_ENV.get(db_type, []) if not env.get(name)]
    if missing:
        raise ConfigError(
            f"Missing required environment variables for {db_type.value}: {', '.join(missing)}. "
            "Set these variables or provide a custom config file."
        )


def parse_prebuilt(db_type: Union[str, PrebuiltDatabase]) -> PrebuiltDatabase:
    try:
        return PrebuiltDatabase(db_type)
    except ValueError:
        supported = ", ".join(item.value for item in PrebuiltDatabase)
        raise ConfigError(f"Unsupported database type: {db_type}. Supported types: {supported}")


def dump_config(config: ToolsConfig) -> str:
    """YAML text for the toolbox --tools-file."""
    return yaml.safe_dump(config.to_document(), sort_keys=False)


def redact_config(config: ToolsConfig) -> Dict[str, Any]:
    """Config document with secrets masked, for logging."""
    document = config.to_document()
    for source in document.get("sources", {}).values():
        for field in SECRET_FIELDS & set(source):
            source[field] = "****"
    return document

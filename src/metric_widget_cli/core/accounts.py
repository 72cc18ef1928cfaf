# src/metric_widget_cli/core/accounts.py
"""
Loads the accounts file and narrows it down by namespace.

The accounts file is TOML with one `[[account]]` table per account:

    [[account]]
    namespace = "SomeDataProcessingProgram"
    account_id = "111111111111"
    region = "us-east-1"
    role_arn = "arn:aws:iam::111111111111:role/Observer"   # optional
"""

import logging
import tomllib
from pathlib import Path
from typing import Optional

from metric_widget_cli.core.exceptions import ConfigError
from metric_widget_cli.core.models import AccountDescriptor

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("namespace", "account_id", "region")
OPTIONAL_FIELDS = ("role_arn",)


def parse_accounts(text: str, source: str = "<string>") -> list[AccountDescriptor]:
    """Parses TOML text into account descriptors, in file order."""
    try:
        document = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{source}: invalid TOML: {e}") from e

    tables = document.get("account")
    if tables is None:
        raise ConfigError(f"{source}: no [[account]] tables found")
    if not isinstance(tables, list):
        raise ConfigError(f"{source}: 'account' must be an array of tables")

    accounts = []
    for index, table in enumerate(tables):
        accounts.append(_to_descriptor(table, index, source))
    return accounts


def _to_descriptor(table, index: int, source: str) -> AccountDescriptor:
    where = f"{source}: account #{index + 1}"
    if not isinstance(table, dict):
        raise ConfigError(f"{where}: expected a table, got {type(table).__name__}")

    values = {}
    for name in REQUIRED_FIELDS:
        if name not in table:
            raise ConfigError(f"{where}: missing required field '{name}'")
        value = table[name]
        if not isinstance(value, str):
            raise ConfigError(f"{where}: field '{name}' must be a string, got {type(value).__name__}")
        if not value.strip():
            raise ConfigError(f"{where}: field '{name}' must not be empty")
        values[name] = value

    for name in OPTIONAL_FIELDS:
        value = table.get(name)
        if value is None:
            continue
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"{where}: field '{name}' must be a non-empty string")
        values[name] = value

    return AccountDescriptor(**values)


def load_accounts(path) -> list[AccountDescriptor]:
    """Reads and parses an accounts file. Either every account loads or ConfigError is raised."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Unable to read accounts file {path}: {e}") from e

    accounts = parse_accounts(text, source=str(path))
    logger.debug("Loaded %d account(s) from %s", len(accounts), path)
    return accounts


def filter_accounts(accounts: list[AccountDescriptor], pattern: Optional[str] = None) -> list[AccountDescriptor]:
    """Keeps accounts whose namespace contains `pattern`; no pattern keeps everything."""
    if not pattern:
        return list(accounts)
    return [acc for acc in accounts if pattern in acc.namespace]

"""
krbdiag Tool Settings

Loads the flat key-value settings file (``config.properties``) that names
the keytab, the principal and the realm configuration to diagnose.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

import attrs
import structlog

from krbdiag.core.exceptions import SettingsError

logger = structlog.get_logger()

DEFAULT_SETTINGS_FILE = "config.properties"
DEFAULT_HMS_PORT = 9083

KEYTAB_PATH = "keytabPath"
PRINCIPAL = "principal"
KRB5_CONF_PATH = "krb5ConfPath"
HMS_HOST = "hms.host"
HMS_PORT = "hms.port"

REQUIRED_KEYS = (KEYTAB_PATH, PRINCIPAL, KRB5_CONF_PATH)


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse properties-file text into a dict.

    Accepts ``key=value`` and ``key: value``; ``#`` and ``!`` start comment
    lines. Later keys override earlier ones.
    """
    data: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line[0] in "#!":
            continue

        positions = [p for p in (line.find("="), line.find(":")) if p > 0]
        if not positions:
            continue
        sep = min(positions)

        key = line[:sep].strip()
        value = line[sep + 1 :].strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        if key:
            data[key] = value
    return data


@attrs.define(frozen=True, slots=True)
class ToolSettings:
    """
    Settings for one diagnostic run.

    Attributes:
        keytab_path: Keytab file to validate and log in with
        principal: Identity expected in the keytab
        krb5_conf_path: Realm configuration file
        hms_host: Optional Hive Metastore host for the auxiliary probe
        hms_port: Raw HMS port text; parsed by the probe step
        source: File the settings were loaded from
    """

    keytab_path: str = ""
    principal: str = ""
    krb5_conf_path: str = ""
    hms_host: str = ""
    hms_port: str = ""
    source: Optional[str] = None

    @classmethod
    def from_mapping(
        cls, values: Dict[str, str], source: Optional[str] = None
    ) -> "ToolSettings":
        return cls(
            keytab_path=values.get(KEYTAB_PATH, "").strip(),
            principal=values.get(PRINCIPAL, "").strip(),
            krb5_conf_path=values.get(KRB5_CONF_PATH, "").strip(),
            hms_host=values.get(HMS_HOST, "").strip(),
            hms_port=values.get(HMS_PORT, "").strip(),
            source=source,
        )

    def value_of(self, key: str) -> str:
        return {
            KEYTAB_PATH: self.keytab_path,
            PRINCIPAL: self.principal,
            KRB5_CONF_PATH: self.krb5_conf_path,
            HMS_HOST: self.hms_host,
            HMS_PORT: self.hms_port,
        }[key]

    def missing_keys(self) -> List[str]:
        """Required keys that are absent or empty, in declaration order."""
        return [key for key in REQUIRED_KEYS if not self.value_of(key)]

    @property
    def hms_port_number(self) -> int:
        try:
            return int(self.hms_port)
        except ValueError:
            return DEFAULT_HMS_PORT


def load_settings(path: Union[str, Path, None] = None) -> ToolSettings:
    """
    Load settings from a properties file.

    Args:
        path: Settings file; defaults to ``config.properties`` in the
            current working directory

    Returns:
        ToolSettings (required keys may still be empty)

    Raises:
        SettingsError: file missing or unreadable
    """
    settings_path = Path(path) if path is not None else Path.cwd() / DEFAULT_SETTINGS_FILE

    if not settings_path.is_file():
        raise SettingsError(
            f"Config file not found: {settings_path}\n"
            f"Please make sure the {DEFAULT_SETTINGS_FILE} file is in the current directory"
        )

    try:
        text = settings_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SettingsError(f"Error loading config file: {e}") from e

    values = parse_properties(text)
    logger.debug("settings_loaded", path=str(settings_path), keys=sorted(values))
    return ToolSettings.from_mapping(values, source=str(settings_path))

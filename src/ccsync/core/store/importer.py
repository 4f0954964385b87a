"""Import vendors from a ccswitch.json configuration file.

Two layouts are understood:

- current: ``{"current": ..., "vendors": [{"id", "name", "env"}], "favorites": [...]}``
- legacy: ``{"default"/"current": ..., "profiles": {id: env}, "descriptions": {id: name}}``
  or a ``vendors`` list whose entries use ``displayName`` and may lack ``env``
"""

import json
import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ...models import Vendor
from .repository import ConfigurationRepository, VendorAlreadyExistsError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path.home() / ".ccswitch" / "ccswitch.json"


class ConfigFileError(Exception):
    """The configuration file could not be read or parsed."""


@dataclass
class ImportedConfiguration:
    """Vendors and markers read from a configuration file."""

    vendors: List[Vendor] = dataclass_field(default_factory=list)
    current: Optional[str] = None
    favorites: List[str] = dataclass_field(default_factory=list)
    presets: List[str] = dataclass_field(default_factory=list)
    legacy: bool = False


@dataclass
class ImportResult:
    """Outcome of importing a configuration into a repository."""

    added: List[str] = dataclass_field(default_factory=list)
    updated: List[str] = dataclass_field(default_factory=list)
    skipped: List[str] = dataclass_field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated)


def load_config_file(path: Path = DEFAULT_CONFIG_FILE) -> ImportedConfiguration:
    """Read a ccswitch.json file in either layout.

    Args:
        path: Configuration file location

    Returns:
        Parsed configuration

    Raises:
        ConfigFileError: If the file is missing or cannot be parsed
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigFileError(f"Configuration file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigFileError(f"Failed to read {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigFileError(f"{path} does not contain a JSON object")

    return parse_config(raw)


def parse_config(raw: Dict[str, Any]) -> ImportedConfiguration:
    """Parse a decoded configuration document."""
    vendors_raw = raw.get("vendors")
    profiles = raw.get("profiles")

    if isinstance(vendors_raw, list) and not profiles:
        vendors = [v for v in (_parse_vendor_entry(e) for e in vendors_raw) if v]
        legacy = any(
            isinstance(e, dict) and "name" not in e and "displayName" in e
            for e in vendors_raw
        )
    elif isinstance(profiles, dict):
        descriptions = raw.get("descriptions") or {}
        vendors = []
        for vendor_id, env in profiles.items():
            vendor = _build_vendor(
                vendor_id, descriptions.get(vendor_id) or vendor_id, env or {}
            )
            if vendor:
                vendors.append(vendor)
        legacy = True
    else:
        vendors = []
        legacy = False

    return ImportedConfiguration(
        vendors=vendors,
        current=raw.get("current") or raw.get("default"),
        favorites=list(raw.get("favorites") or []),
        presets=list(raw.get("presets") or []),
        legacy=legacy,
    )


def import_configuration(
    repository: ConfigurationRepository,
    config: ImportedConfiguration,
    overwrite: bool = False,
) -> ImportResult:
    """Copy imported vendors into a repository.

    Args:
        repository: Destination configuration store
        config: Parsed configuration
        overwrite: Replace vendors that already exist instead of skipping them

    Returns:
        ImportResult listing added, updated and skipped vendor ids
    """
    result = ImportResult()
    was_empty = not repository.get_all_vendors()

    for vendor in config.vendors:
        try:
            repository.add_vendor(vendor)
            result.added.append(vendor.id)
        except VendorAlreadyExistsError:
            if overwrite and repository.get_vendor(vendor.id) != vendor:
                repository.update_vendor(vendor)
                result.updated.append(vendor.id)
            else:
                result.skipped.append(vendor.id)

    known = {v.id for v in repository.get_all_vendors()}
    if config.favorites:
        repository.set_favorites(
            repository.get_favorites() | {i for i in config.favorites if i in known}
        )
    if config.presets:
        repository.set_presets(
            repository.get_presets() | {i for i in config.presets if i in known}
        )
    if was_empty and config.current in known:
        repository.set_current_vendor(config.current)

    logger.info(
        "Imported vendors: %d added, %d updated, %d skipped",
        len(result.added),
        len(result.updated),
        len(result.skipped),
    )
    return result


def _parse_vendor_entry(entry: Any) -> Optional[Vendor]:
    if not isinstance(entry, dict) or "id" not in entry:
        logger.warning("Skipping vendor entry without id: %r", entry)
        return None
    vendor_id = entry["id"]
    name = entry.get("name") or entry.get("displayName") or vendor_id
    return _build_vendor(vendor_id, name, entry.get("env") or {})


def _build_vendor(vendor_id: Any, name: Any, env: Any) -> Optional[Vendor]:
    try:
        return Vendor(id=vendor_id, name=name, env=env)
    except ValidationError as e:
        logger.warning("Skipping invalid vendor %r: %s", vendor_id, e)
        return None

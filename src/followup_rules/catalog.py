"""CatalogStore — loads the YAML question catalogs into typed models.

This is the single source of truth for catalog data at runtime.  The store
is loaded once at startup and provides lookup by catalog name.

Usage::

    store = CatalogStore()          # defaults to rulesets/v1/ inside the package
    store.load()                    # parse all YAML files

    catalog = store.get("treatment_followup")
    q = catalog.get("treatmentOutcome")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from followup_rules.errors import CatalogError
from followup_rules.interfaces import CatalogSource
from followup_rules.models.question import Catalog

logger = logging.getLogger(__name__)

DEFAULT_RULESET_DIR = Path(__file__).parent / "rulesets" / "v1"


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def parse_catalog(raw: Any, *, origin: str) -> Catalog:
    """Validate a raw catalog document into a :class:`Catalog`.

    ``origin`` is only used in error messages (file path or URL).
    """
    if not isinstance(raw, dict):
        raise CatalogError(f"Catalog document at {origin} is not a mapping")
    try:
        return Catalog.model_validate(raw)
    except ValidationError as exc:
        raise CatalogError(f"Invalid catalog at {origin}: {exc}") from exc


# ---------------------------------------------------------------------------
# CatalogStore
# ---------------------------------------------------------------------------

class CatalogStore:
    """Loads every ``*.yaml`` catalog under the ruleset directory.

    Attributes populated after :meth:`load`:

        catalogs — dict[name, Catalog] in file-name order
    """

    def __init__(self, ruleset_dir: str | Path | None = None) -> None:
        if ruleset_dir is None:
            ruleset_dir = DEFAULT_RULESET_DIR
        self._base = Path(ruleset_dir)
        self.catalogs: dict[str, Catalog] = {}

    def load(self) -> None:
        """Parse all YAML files under the ruleset directory.

        Call this once at startup.  Raises ``FileNotFoundError`` if the
        directory is missing and ``CatalogError`` for malformed catalogs.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing ruleset directory: {self._base}")

        for path in sorted(self._base.glob("*.yaml")):
            catalog = parse_catalog(load_yaml(path), origin=str(path))
            if catalog.name in self.catalogs:
                raise CatalogError(
                    f"Duplicate catalog name '{catalog.name}' in {path}"
                )
            self.catalogs[catalog.name] = catalog

        logger.info(
            "CatalogStore loaded %d catalogs from %s: %s",
            len(self.catalogs),
            self._base,
            ", ".join(self.catalogs),
        )

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get(self, name: str) -> Catalog:
        """Return a catalog by name.

        Raises:
            KeyError: if no catalog with that name was loaded.
        """
        return self.catalogs[name]

    def names(self) -> list[str]:
        return list(self.catalogs)


class StaticCatalogSource(CatalogSource):
    """In-process catalog backend reading a YAML file shipped with the SDK.

    Args:
        name: catalog file stem under ``ruleset_dir`` (e.g. "adverse_event")
        ruleset_dir: optional override for the ruleset directory
    """

    def __init__(self, name: str, ruleset_dir: str | Path | None = None) -> None:
        self._path = Path(ruleset_dir or DEFAULT_RULESET_DIR) / f"{name}.yaml"

    def load(self) -> Catalog:
        return parse_catalog(load_yaml(self._path), origin=str(self._path))

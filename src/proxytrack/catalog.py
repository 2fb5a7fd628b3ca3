"""Catalog loading.

Example catalog file (catalog.yaml):

    hosts:
      - id: "sacks"
        name: "Sacks"
        color: "#F59E0B"
    categories:
      - id: "political-winner"
        title: "Biggest Political Winner"
    predictions:
      - id: "sacks-political-winner"
        host_id: "sacks"
        category_id: "political-winner"
        prediction: "The Trump Boom"
        proxies:
          - id: "gdp-growth"
            name: "Gross Domestic Product (Percent Change from Year Ago)"
            kind: "economic-series"
            identifier: "GDP"
            transform: "pc1"
            unit: "%"
            baseline:
              value: 5
              date: "2026-01-01"
              label: "5%"
"""

from __future__ import annotations

from collections import Counter
from pathlib import Path

import yaml
from pydantic import ValidationError

from proxytrack.exceptions import ConfigError
from proxytrack.types import Catalog


def validate_catalog(catalog: Catalog) -> Catalog:
    """Check cross references inside a catalog.

    :param catalog: Parsed catalog.
    :returns: The same catalog.
    :raises ConfigError: If ids are duplicated or references dangle.
    """
    host_ids = {h.id for h in catalog.hosts}
    category_ids = {c.id for c in catalog.categories}

    for label, ids in (
        ("host", [h.id for h in catalog.hosts]),
        ("category", [c.id for c in catalog.categories]),
        ("prediction", [p.id for p in catalog.predictions]),
    ):
        duplicates = sorted(i for i, n in Counter(ids).items() if n > 1)
        if duplicates:
            raise ConfigError(f"Duplicate {label} ids: {duplicates}")

    for prediction in catalog.predictions:
        if prediction.host_id not in host_ids:
            raise ConfigError(
                f"Prediction '{prediction.id}' references unknown host '{prediction.host_id}'"
            )
        if prediction.category_id not in category_ids:
            raise ConfigError(
                f"Prediction '{prediction.id}' references unknown category "
                f"'{prediction.category_id}'"
            )
        proxy_ids = Counter(p.id for p in prediction.proxies)
        duplicates = sorted(i for i, n in proxy_ids.items() if n > 1)
        if duplicates:
            raise ConfigError(
                f"Prediction '{prediction.id}' has duplicate proxy ids: {duplicates}"
            )

    return catalog


def load_catalog(catalog_path: str | Path) -> Catalog:
    """Parse and validate a catalog file.

    :param catalog_path: Path to YAML catalog file.
    :returns: Validated Catalog object.
    :raises ConfigError: If file cannot be read or the catalog is invalid.
    """
    catalog_path = Path(catalog_path)

    try:
        with open(catalog_path) as f:
            raw_catalog = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Catalog file not found: {catalog_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in catalog file: {e}") from e

    if not isinstance(raw_catalog, dict):
        raise ConfigError("Catalog must be a YAML mapping")

    unknown = sorted(set(raw_catalog) - set(Catalog.model_fields))
    if unknown:
        raise ConfigError(f"Unknown catalog sections: {unknown}")

    try:
        catalog = Catalog(**raw_catalog)
    except ValidationError as e:
        raise ConfigError(f"Invalid catalog: {e}") from e

    return validate_catalog(catalog)


__all__ = ["load_catalog", "validate_catalog"]

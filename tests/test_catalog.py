"""Tests for catalog loading."""

from pathlib import Path

import pytest

from proxytrack.catalog import load_catalog
from proxytrack.exceptions import ConfigError
from proxytrack.types import ProxyKind

EXAMPLE = Path(__file__).resolve().parent.parent / "config" / "catalog.example.yaml"

VALID = """
hosts:
  - {id: sacks, name: Sacks}
categories:
  - {id: political-winner, title: Biggest Political Winner}
predictions:
  - id: sacks-political-winner
    host_id: sacks
    category_id: political-winner
    prediction: The Trump Boom
    proxies:
      - id: gdp-growth
        name: GDP
        kind: economic-series
        identifier: GDP
        transform: pc1
        baseline: {value: 5, date: 2026-01-01, label: "5%"}
"""


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "catalog.yaml"
    path.write_text(text)
    return path


def test_load_valid_catalog(tmp_path: Path) -> None:
    """A well-formed catalog parses into typed records."""
    catalog = load_catalog(write(tmp_path, VALID))

    [(prediction, proxy)] = list(catalog.proxies())
    assert prediction.id == "sacks-political-winner"
    assert proxy.kind is ProxyKind.ECONOMIC_SERIES
    assert proxy.transform == "pc1"
    assert proxy.baseline.value == 5.0


def test_example_catalog_is_valid() -> None:
    """The shipped example catalog loads."""
    catalog = load_catalog(EXAMPLE)

    kinds = {proxy.kind for _, proxy in catalog.proxies()}
    assert ProxyKind.NEWS in kinds
    assert ProxyKind.PROBABILITY_MARKET in kinds


def test_missing_file_raises(tmp_path: Path) -> None:
    """A missing file is a ConfigError."""
    with pytest.raises(ConfigError, match="not found"):
        load_catalog(tmp_path / "nope.yaml")


def test_non_mapping_raises(tmp_path: Path) -> None:
    """The top level must be a mapping."""
    with pytest.raises(ConfigError, match="YAML mapping"):
        load_catalog(write(tmp_path, "- just\n- a list\n"))


def test_unknown_host_raises(tmp_path: Path) -> None:
    """Predictions must reference a known host."""
    with pytest.raises(ConfigError, match="unknown host 'sacks'"):
        load_catalog(write(tmp_path, VALID.replace("{id: sacks, name: Sacks}", "{id: jason, name: Jason}")))


def test_unknown_category_raises(tmp_path: Path) -> None:
    """Predictions must reference a known category."""
    text = VALID.replace("category_id: political-winner", "category_id: business-loser")

    with pytest.raises(ConfigError, match="unknown category"):
        load_catalog(write(tmp_path, text))


def test_duplicate_proxy_ids_raise(tmp_path: Path) -> None:
    """Proxy ids are unique within a prediction."""
    duplicate = """
      - id: gdp-growth
        name: GDP again
        kind: economic-series
        identifier: GDP
        baseline: {value: 5, date: 2026-01-01}
"""
    with pytest.raises(ConfigError, match="duplicate proxy ids"):
        load_catalog(write(tmp_path, VALID + duplicate))


def test_unknown_kind_raises(tmp_path: Path) -> None:
    """Proxy kinds come from a closed set."""
    with pytest.raises(ConfigError, match="Invalid catalog"):
        load_catalog(write(tmp_path, VALID.replace("kind: economic-series", "kind: crypto")))

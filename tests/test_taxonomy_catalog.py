from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from vinted_auto_publish.models.taxonomy import TaxonomyNode
from vinted_auto_publish.taxonomy.catalog import TaxonomyCatalog, get_default_catalog, load_catalog


def test_default_catalog_structure():
    catalog = get_default_catalog()
    assert len(catalog) == 91
    assert catalog.version == "2024.11"
    assert catalog.branches() == ["Damen", "Herren", "Kinder"]
    assert all(node.depth >= 3 for node in catalog)
    assert [node.index for node in catalog] == list(range(len(catalog)))


def test_default_catalog_is_cached():
    assert get_default_catalog() is get_default_catalog()


def test_every_branch_has_fallback():
    catalog = get_default_catalog()
    for branch in catalog.branches():
        node = catalog.fallback_for(branch)
        assert node.segments == (branch, "Kleidung", "Sonstiges")


def test_node_from_path_splits_segments():
    node = TaxonomyNode.from_path(
        "Damen → Kleidung → Pullover & Sweater → Hoodies & Sweatshirts → Hoodies"
    )
    assert node.main_branch == "Damen"
    assert node.depth == 5
    assert node.last_segment == "Hoodies"


def test_node_rejects_empty_segment():
    with pytest.raises(ValidationError):
        TaxonomyNode.from_path("Damen →  → Hoodies")


def test_in_branch_filters_and_none_returns_all():
    catalog = TaxonomyCatalog.from_paths(
        [
            "Damen → Kleidung → Sonstiges",
            "Herren → Kleidung → Sonstiges",
            "Herren → Accessoires → Uhren",
        ]
    )
    assert [node.full_path for node in catalog.in_branch("Herren")] == [
        "Herren → Kleidung → Sonstiges",
        "Herren → Accessoires → Uhren",
    ]
    assert len(catalog.in_branch(None)) == 3
    assert catalog.in_branch("Kinder") == []
    assert catalog.find("Herren → Accessoires → Uhren").index == 2
    assert catalog.find("Unbekannt") is None


def test_load_catalog_accepts_plain_list(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(["Damen → Kleidung → Sonstiges"]), encoding="utf-8")
    catalog = load_catalog(path)
    assert len(catalog) == 1
    assert catalog.version is None


@pytest.mark.parametrize(
    "payload",
    [
        {"categories": "nope"},
        {"categories": [{"full_path": ""}]},
        {"categories": [{"name": "Damen"}]},
    ],
)
def test_load_catalog_rejects_malformed(tmp_path, payload):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(ValueError):
        load_catalog(path)


def test_load_catalog_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog(tmp_path / "missing.json")

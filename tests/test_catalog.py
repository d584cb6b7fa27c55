"""Tests for the function catalog."""

import itertools

import pytest

from tooldeck.errors import CatalogFrozen, DuplicateName, UnknownFunction
from tooldeck.tools.catalog import Catalog
from tooldeck.tools.schema import build_descriptor, free_form_descriptor


def _catalog(counter):
    return Catalog([
        build_descriptor("Add", "Adds two numbers", counter=counter),
        build_descriptor("Subtract", "Subtracts two numbers from each other", counter=counter),
        build_descriptor("Noop", "", counter=counter),
    ])


class TestRegister:
    def test_duplicate_name_rejected(self, counter):
        catalog = _catalog(counter)
        with pytest.raises(DuplicateName):
            catalog.register(build_descriptor("Add", "again", counter=counter))
        assert len(catalog) == 3

    def test_frozen_catalog_rejects_registration(self, counter):
        catalog = _catalog(counter).freeze()
        assert catalog.frozen
        with pytest.raises(CatalogFrozen):
            catalog.register(build_descriptor("Multiply", "", counter=counter))

    def test_insertion_order(self, counter):
        catalog = _catalog(counter)
        assert catalog.names() == ["Add", "Subtract", "Noop"]
        assert [catalog.position(n) for n in catalog.names()] == [0, 1, 2]
        assert [d.name for d in catalog] == catalog.names()


class TestResolve:
    def test_resolve(self, counter):
        catalog = _catalog(counter)
        assert catalog.resolve("Add").name == "Add"
        assert "Add" in catalog
        assert "Divide" not in catalog

    def test_unknown(self, counter):
        with pytest.raises(UnknownFunction, match="Divide"):
            _catalog(counter).resolve("Divide")


class TestTotalTokenCost:
    def test_additive(self, counter):
        catalog = _catalog(counter)
        add = catalog.resolve("Add").token_cost
        sub = catalog.resolve("Subtract").token_cost
        assert catalog.total_token_cost(["Add", "Subtract"]) == add + sub
        assert catalog.total_token_cost([]) == 0

    def test_order_independent(self, counter):
        catalog = _catalog(counter)
        names = catalog.names()
        totals = {
            catalog.total_token_cost(perm) for perm in itertools.permutations(names)
        }
        assert len(totals) == 1

    def test_unknown_name_fails(self, counter):
        with pytest.raises(UnknownFunction):
            _catalog(counter).total_token_cost(["Add", "Missing"])


def test_free_form_not_advertised(counter):
    catalog = _catalog(counter)
    catalog.register(free_form_descriptor(counter=counter))
    assert "GPT" in catalog.names()
    assert "GPT" not in catalog.advertised_names()

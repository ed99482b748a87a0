"""
Product catalog tests
"""

import json

import pytest

from icescraper.errors import ProductCatalogError
from icescraper.products import load_products


def write_products(tmp_path, content):
    path = tmp_path / "products.json"
    path.write_text(content if isinstance(content, str) else json.dumps(content))
    return str(path)


class TestLoadProducts:
    """products.json"""

    @pytest.mark.unit
    def test_calendar_targets(self, tmp_path):
        path = write_products(tmp_path, {
            'prod-1': {'GCal': 'one@example.com'},
            'prod-2': {'GCal': ['two@example.com', 'three@example.com']},
            'prod-3': {},
        })

        catalog = load_products(path)

        assert catalog.product_ids() == ['prod-1', 'prod-2', 'prod-3']
        assert catalog.calendars_for('prod-1') == ['one@example.com']
        assert catalog.calendars_for('prod-2') == ['two@example.com', 'three@example.com']
        assert catalog.calendars_for('prod-3') == []
        assert catalog.calendars_for('unknown') == []
        assert 'prod-2' in catalog

    @pytest.mark.unit
    def test_missing_file(self, tmp_path):
        with pytest.raises(ProductCatalogError):
            load_products(str(tmp_path / "nope.json"))

    @pytest.mark.unit
    def test_malformed_json(self, tmp_path):
        with pytest.raises(ProductCatalogError):
            load_products(write_products(tmp_path, "{'prod-1':"))

    @pytest.mark.unit
    def test_not_an_object(self, tmp_path):
        with pytest.raises(ProductCatalogError):
            load_products(write_products(tmp_path, ['prod-1']))

    @pytest.mark.unit
    def test_bad_calendar_target(self, tmp_path):
        with pytest.raises(ProductCatalogError):
            load_products(write_products(tmp_path, {'prod-1': {'GCal': 42}}))

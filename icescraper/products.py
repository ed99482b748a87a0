# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Product catalog - which booking products to poll and where their sessions go
"""
import json
import logging
from typing import Dict, List

from icescraper.errors import ProductCatalogError
from icescraper.models import ProductId

logger = logging.getLogger(__name__)


class ProductCatalog:
    """
    Product id -> calendar ids, in file order.

    The products file is a JSON object such as
    {"<product id>": {"GCal": "<calendar id>"}}; GCal may also be a list of
    calendar ids, or left out to poll a product without syncing it.
    """

    def __init__(self, calendars: Dict[ProductId, List[str]]):
        self._calendars = calendars

    def __len__(self):
        return len(self._calendars)

    def __contains__(self, product_id):
        return product_id in self._calendars

    def product_ids(self) -> List[ProductId]:
        return list(self._calendars)

    def calendars_for(self, product_id: ProductId) -> List[str]:
        return list(self._calendars.get(product_id, []))

    @classmethod
    def from_dict(cls, data) -> "ProductCatalog":
        if not isinstance(data, dict):
            raise ProductCatalogError("parsing products file: expected an object of products")

        calendars = {}
        for product_id, entry in data.items():
            if entry is None:
                entry = {}
            if not isinstance(entry, dict):
                raise ProductCatalogError(f"parsing products file: entry for {product_id} is not an object")

            targets = entry.get('GCal') or []
            if isinstance(targets, str):
                targets = [targets]
            if not isinstance(targets, list) or not all(isinstance(t, str) for t in targets):
                raise ProductCatalogError(f"parsing products file: bad GCal for {product_id}")
            calendars[product_id] = [t for t in targets if t]
        return cls(calendars)


def load_products(path: str) -> ProductCatalog:
    """
    Load the products file

    Raises:
        ProductCatalogError: if the file can't be read or parsed
    """
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except OSError as e:
        raise ProductCatalogError(f"opening products file {path}: {e}") from e
    except ValueError as e:
        raise ProductCatalogError(f"parsing products file {path}: {e}") from e

    catalog = ProductCatalog.from_dict(data)
    logger.info(f"Loaded {len(catalog)} products from {path}")
    return catalog

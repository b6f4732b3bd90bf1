"""Shared fixtures for price discovery tests."""

from typing import Dict, List

import pytest

from renovation_pricing.models.supplier_models import SupplierRef
from renovation_pricing.services.price_discovery.models import FetchError


class FakeGateway:
    """Serves canned pages by URL; any other URL fails like a 404."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        if url in self.pages:
            return self.pages[url]
        raise FetchError(url, f"HTTP 404 for {url}")


@pytest.fixture()
def make_gateway():
    return FakeGateway


@pytest.fixture()
def supplier():
    return SupplierRef(supplier_id=7, name="Outillage Pro", base_url="https://shop.example")

#!/usr/bin/env python3
"""
Tests for the site adapter registry.
"""
import pytest

from autoscrape.sites import FIELDS, SITE_ADAPTERS, get_adapter, is_supported, normalize_site


@pytest.mark.parametrize("host,expected", [
    ("www.autotrader.com", "autotrader.com"),
    ("autotrader.ca", "autotrader.com"),
    ("www.cars.com", "cars.com"),
    ("WWW.CARGURUS.COM", "cargurus.com"),
    ("smithford.dealer.com", "dealer.com"),
    ("https://www.cars.com/vehicledetail/abc/", "cars.com"),
    ("www.ebay.com", "www.ebay.com"),
    ("https://Example.org/listing", "example.org"),
    ("", ""),
])
def test_normalize_site(host, expected):
    assert normalize_site(host) == expected


def test_every_adapter_covers_every_field():
    assert set(SITE_ADAPTERS) == {"autotrader.com", "cars.com", "cargurus.com", "dealer.com"}
    for site, adapter in SITE_ADAPTERS.items():
        assert set(adapter) == set(FIELDS), site
        for field in FIELDS:
            assert isinstance(adapter[field], tuple) and adapter[field], (site, field)


def test_adapters_are_read_only():
    with pytest.raises(TypeError):
        SITE_ADAPTERS["example.com"] = {}
    with pytest.raises(TypeError):
        SITE_ADAPTERS["cars.com"]["vin"] = (".other",)


def test_lookup():
    assert get_adapter("cars.com")["price"][0] == ".primary-price"
    assert get_adapter("www.cars.com") is None
    assert is_supported("https://www.autotrader.com/cars-for-sale/123")
    assert not is_supported("https://craigslist.org/cto/123.html")

#!/usr/bin/env python3
"""
Tests for the extraction orchestrator.
"""
import asyncio
import os
from decimal import Decimal

import pytest

from autoscrape.dom import HtmlDocument
from autoscrape.errors import AlreadyExtractingError, IncompleteDataError, UnsupportedSiteError
from autoscrape.extractor import ExtractionState, VehicleExtractor, auto_extract_on_load
from autoscrape.readiness import ReadinessGate

TESTDATA = os.path.join(os.path.dirname(__file__), "testdata")
CARS_URL = "https://www.cars.com/vehicledetail/8c1f2a/"


def fast_gate():
    return ReadinessGate(poll_interval=0.01, timeout=0.05)


def cars_listing():
    return HtmlDocument.from_file(os.path.join(TESTDATA, "cars_com_listing.html"), url=CARS_URL)


def test_extracts_cars_com_listing():
    extractor = VehicleExtractor(cars_listing(), gate=fast_gate())
    vehicle = asyncio.run(extractor.extract())

    assert vehicle.source == "cars.com"
    assert vehicle.source_url == CARS_URL
    assert vehicle.title == "2021 Toyota Camry SE"
    assert vehicle.price == Decimal("22999")
    assert vehicle.mileage == 31480
    assert vehicle.location == "Springfield Auto Mall, Springfield, IL"
    assert vehicle.description == "One owner, clean history. Recently serviced."
    assert vehicle.vin is None
    assert vehicle.images == (
        "https://images.cars.com/camry-1.jpg",
        "https://images.cars.com/camry-2.jpg",
        "https://www.cars.com/static/relative-rear.jpg",
    )
    assert vehicle.features == frozenset({"Backup Camera", "Bluetooth", "Apple CarPlay"})
    assert extractor.state is ExtractionState.IDLE


def test_unsupported_site():
    doc = HtmlDocument('<span class="vehicle-make">Ford</span>', url="https://www.ebay.com/itm/1")
    extractor = VehicleExtractor(doc, gate=fast_gate())

    with pytest.raises(UnsupportedSiteError) as excinfo:
        asyncio.run(extractor.extract())

    assert excinfo.value.site == "www.ebay.com"
    assert str(excinfo.value) == "Unsupported site: www.ebay.com"
    assert not extractor.is_extracting


def test_missing_model_is_incomplete():
    doc = HtmlDocument(
        '<span class="vehicle-year">2018</span><span class="vehicle-make">Honda</span>',
        url="https://www.cargurus.com/Cars/l-Used-Honda-Civic",
    )
    extractor = VehicleExtractor(doc, gate=fast_gate())

    with pytest.raises(IncompleteDataError) as excinfo:
        asyncio.run(extractor.extract())

    assert excinfo.value.missing == ["model"]
    assert extractor.state is ExtractionState.IDLE


def test_second_call_while_running_is_rejected():
    doc = HtmlDocument(
        '<span class="vehicle-make">Ford</span><span class="vehicle-model">F-150</span>',
        url="https://www.dealer.com/used/ford-f150.htm",
        ready_state="loading",
    )
    extractor = VehicleExtractor(doc, gate=fast_gate())

    async def scenario():
        first = asyncio.ensure_future(extractor.extract())
        await asyncio.sleep(0)
        assert extractor.is_extracting

        with pytest.raises(AlreadyExtractingError):
            await extractor.extract()
        # the rejected call must not release the running one's flag
        assert extractor.is_extracting

        doc.mark_loaded()
        return await first

    vehicle = asyncio.run(scenario())
    assert vehicle.make == "Ford"
    assert vehicle.model == "F-150"
    assert extractor.state is ExtractionState.IDLE


def test_state_resets_after_failure_and_retry_works():
    doc = HtmlDocument('<span class="vehicle-make">Mazda</span>', url="https://www.cars.com/vehicledetail/1/")
    extractor = VehicleExtractor(doc, gate=fast_gate())

    with pytest.raises(IncompleteDataError):
        asyncio.run(extractor.extract())
    assert extractor.state is ExtractionState.IDLE

    doc = HtmlDocument(
        '<span class="vehicle-make">Mazda</span><span class="vehicle-model">CX-5</span>',
        url="https://www.cars.com/vehicledetail/1/",
    )
    extractor.document = doc
    assert asyncio.run(extractor.extract()).model == "CX-5"


def test_auto_extract_respects_setting():
    extractor = VehicleExtractor(cars_listing(), gate=fast_gate())

    assert asyncio.run(auto_extract_on_load(extractor, {"auto_extract_vin": False}, delay=0)) is None
    vehicle = asyncio.run(auto_extract_on_load(extractor, {"auto_extract_vin": True}, delay=0))
    assert vehicle.make == "Toyota"


def test_auto_extract_skips_unsupported_site():
    doc = HtmlDocument('<span class="vehicle-make">Ford</span>', url="https://www.ebay.com/itm/1")
    extractor = VehicleExtractor(doc, gate=fast_gate())
    assert asyncio.run(auto_extract_on_load(extractor, {"auto_extract_vin": True}, delay=0)) is None


def test_auto_extract_skips_when_busy():
    with open(os.path.join(TESTDATA, "cars_com_listing.html"), encoding="utf-8") as f:
        doc = HtmlDocument(f.read(), url=CARS_URL, ready_state="loading")
    extractor = VehicleExtractor(doc, gate=fast_gate())

    async def scenario():
        manual = asyncio.ensure_future(extractor.extract())
        await asyncio.sleep(0)
        auto = await auto_extract_on_load(extractor, {"auto_extract_vin": True}, delay=0)
        doc.mark_loaded()
        return auto, await manual

    auto, manual = asyncio.run(scenario())
    assert auto is None
    assert manual.make == "Toyota"

#!/usr/bin/env python3
"""
Tests for Marketplace description generation.
"""
from decimal import Decimal

from autoscrape.description import CALL_TO_ACTION, generate_facebook_description
from autoscrape.models import ExtractedVehicle


def test_full_description():
    vehicle = ExtractedVehicle(
        source="cars.com",
        source_url="https://www.cars.com/vehicledetail/1/",
        vin="1HGCM82633A004352",
        year=2021,
        make="Toyota",
        model="Camry",
        trim="SE",
        price=Decimal("22999"),
        mileage=31480,
        location="Springfield,  IL",
        description="One owner.\n  Clean history.",
        features=frozenset({"Bluetooth", "Backup Camera"}),
    )

    text = generate_facebook_description(vehicle)

    assert text == "\n\n".join([
        "🚗 2021 Toyota Camry SE",
        "💰 Price: $22,999\n📍 Location: Springfield, IL\n🛣️ Mileage: 31,480 miles\n🔍 VIN: 1HGCM82633A004352",
        "One owner. Clean history.",
        "✨ Features: Backup Camera, Bluetooth",
        CALL_TO_ACTION,
        "#UsedCars #Toyota #Camry #CarSale",
    ])


def test_sparse_stored_row():
    row = {"make": "Land Rover", "model": "Range Rover", "price": 18450.5, "features": []}

    text = generate_facebook_description(row)

    assert text.startswith("🚗 Land Rover Range Rover\n\n💰 Price: $18,450.50\n\n")
    assert "None" not in text
    assert "Mileage" not in text
    assert "Features" not in text
    assert text.endswith("#UsedCars #LandRover #RangeRover #CarSale")

"""
Facebook Marketplace listing text for a stored or freshly extracted vehicle.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from .models import ExtractedVehicle
from .utils import clean_text

CALL_TO_ACTION = "Contact for more details and to schedule a test drive!"


def _format_price(price: Optional[Union[float, Decimal]]) -> Optional[str]:
    if price is None:
        return None
    value = Decimal(str(price))
    if value == value.to_integral_value():
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def _hashtag(value: Optional[str]) -> Optional[str]:
    tag = "".join(ch for ch in (value or "") if ch.isalnum())
    return f"#{tag}" if tag else None


def generate_facebook_description(vehicle: Union[ExtractedVehicle, Dict[str, Any]]) -> str:
    """
    Build Marketplace post text.

    Lines whose value is unknown are left out instead of rendering "None".
    """
    v = vehicle.to_dict() if isinstance(vehicle, ExtractedVehicle) else dict(vehicle)

    title = " ".join(str(p) for p in (v.get("year"), v.get("make"), v.get("model"), v.get("trim")) if p)
    header = [f"🚗 {title}" if title else "🚗 Vehicle for sale"]

    facts: List[str] = []
    price = _format_price(v.get("price"))
    if price:
        facts.append(f"💰 Price: {price}")
    if v.get("location"):
        facts.append(f"📍 Location: {clean_text(v['location'])}")
    if v.get("mileage") is not None:
        facts.append(f"🛣️ Mileage: {v['mileage']:,} miles")
    if v.get("vin"):
        facts.append(f"🔍 VIN: {v['vin']}")

    sections = ["\n".join(header)]
    if facts:
        sections.append("\n".join(facts))
    if v.get("description"):
        sections.append(clean_text(v["description"]))

    features = sorted(v.get("features") or [])
    if features:
        sections.append(f"✨ Features: {', '.join(features)}")

    sections.append(CALL_TO_ACTION)

    tags = ["#UsedCars", "#CarSale"]
    for value in (v.get("make"), v.get("model")):
        tag = _hashtag(value)
        if tag and tag not in tags:
            tags.insert(-1, tag)
    sections.append(" ".join(tags))

    return "\n\n".join(sections)

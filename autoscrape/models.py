"""
Data models for the vehicle extraction core.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class ExtractedVehicle:
    """One vehicle record read from a listing page.

    Built once per extraction call and never mutated afterwards. Only
    records with both ``make`` and ``model`` leave the extractor.
    """

    # Origin
    source: str
    source_url: str

    # Identity
    vin: Optional[str] = None
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None

    # Listing details
    price: Optional[Decimal] = None
    mileage: Optional[int] = None
    location: Optional[str] = None
    description: Optional[str] = None

    # Media
    images: Tuple[str, ...] = ()
    features: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def title(self) -> str:
        """Short human label, e.g. ``2021 Toyota Camry SE``."""
        parts = [str(self.year) if self.year else None, self.make, self.model, self.trim]
        return " ".join(p for p in parts if p)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation."""
        return {
            "source": self.source,
            "source_url": self.source_url,
            "vin": self.vin,
            "year": self.year,
            "make": self.make,
            "model": self.model,
            "trim": self.trim,
            "price": float(self.price) if self.price is not None else None,
            "mileage": self.mileage,
            "location": self.location,
            "description": self.description,
            "images": list(self.images),
            "features": sorted(self.features),
        }

"""
Pydantic models for API request/response serialization.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from autoscrape.database import SESSION_STATUSES, VEHICLE_STATUSES
from autoscrape.fields import MIN_YEAR, is_valid_vin


def _check_vin(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    if not is_valid_vin(v):
        raise ValueError("VIN must be 17 characters and exclude I, O and Q")
    return "".join(v.split()).upper()


def _check_status(v: Optional[str], allowed) -> Optional[str]:
    if v is not None and v not in allowed:
        raise ValueError(f"status must be one of {', '.join(allowed)}")
    return v


class VehicleBase(BaseModel):
    vin: Optional[str] = None
    year: Optional[int] = Field(None, ge=MIN_YEAR)
    trim: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    mileage: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None
    description: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    source_url: Optional[str] = None
    facebook_post_id: Optional[str] = None

    @field_validator("vin")
    @classmethod
    def validate_vin(cls, v):
        return _check_vin(v)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v):
        max_year = datetime.now(timezone.utc).year + 1
        if v is not None and v > max_year:
            raise ValueError(f"year must be at most {max_year}")
        return v


class VehicleIn(VehicleBase):
    """Input model for a new vehicle; make and model are mandatory."""
    source: str = Field(..., min_length=1)
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    status: str = "extracted"

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v, VEHICLE_STATUSES)


class VehicleUpdate(VehicleBase):
    """Partial update; only fields that are sent are applied."""
    source: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    features: Optional[List[str]] = None
    images: Optional[List[str]] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is None:
            raise ValueError("status must not be null")
        return _check_status(v, VEHICLE_STATUSES)

    @field_validator("source", "make", "model")
    @classmethod
    def validate_required_text(cls, v):
        # may be omitted, but never cleared
        if v is None or not v.strip():
            raise ValueError("must not be empty")
        return v


class VehicleOut(BaseModel):
    """Output model for vehicle data."""
    id: str
    source: str
    source_url: Optional[str] = None
    vin: Optional[str] = None
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    price: Optional[float] = None
    mileage: Optional[int] = None
    location: Optional[str] = None
    description: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    status: str = "extracted"
    facebook_post_id: Optional[str] = None
    extracted_at: Optional[str] = None
    last_updated: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class VehiclesResponse(BaseModel):
    """Response model for paginated vehicles."""
    vehicles: List[VehicleOut]
    pagination: Pagination


class SessionIn(BaseModel):
    status: str = "active"
    current_site: Optional[str] = None
    total_items: int = Field(0, ge=0)
    current_action: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v, SESSION_STATUSES)


class SessionUpdate(BaseModel):
    status: Optional[str] = None
    current_site: Optional[str] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    total_items: Optional[int] = Field(None, ge=0)
    completed_items: Optional[int] = Field(None, ge=0)
    current_action: Optional[str] = None
    error_message: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v, SESSION_STATUSES)


class SessionOut(BaseModel):
    id: str
    status: str
    current_site: Optional[str] = None
    progress: int = 0
    total_items: int = 0
    completed_items: int = 0
    current_action: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    error_message: Optional[str] = None


class ActivityOut(BaseModel):
    id: str
    type: str
    description: str
    vehicle_id: Optional[str] = None
    session_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None


class DashboardStats(BaseModel):
    total_vehicles: int
    successful_scrapes: int
    facebook_posts: int
    failed_extractions: int


class DescriptionRequest(BaseModel):
    vehicle_id: str


class DescriptionResponse(BaseModel):
    description: str


class QuickPostRequest(BaseModel):
    vehicle_ids: List[str]
    group_ids: List[str]


class QuickPostResult(BaseModel):
    vehicle_id: str
    group_id: str
    description: str
    status: str = "prepared"


class QuickPostResponse(BaseModel):
    results: List[QuickPostResult]


class SettingsOut(BaseModel):
    auto_extract_vin: bool = True
    auto_post_facebook: bool = False
    lazy_load_images: bool = True
    scraping_delay: int = 2000
    max_retries: int = 3
    settings: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[str] = None


class SettingsUpdate(BaseModel):
    auto_extract_vin: Optional[bool] = None
    auto_post_facebook: Optional[bool] = None
    lazy_load_images: Optional[bool] = None
    scraping_delay: Optional[int] = Field(None, ge=0)
    max_retries: Optional[int] = Field(None, ge=0)
    settings: Optional[Dict[str, Any]] = None

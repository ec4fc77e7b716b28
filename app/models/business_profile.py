# backend/app/models/business_profile.py
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ValidationInfo, field_validator

TEMP_ID_PREFIX = "temp-"

DAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

SOCIAL_PLATFORMS = ("facebook", "instagram", "twitter", "linkedin", "thumbtack", "yelp")

# Checklist offered on the dashboard
SERVICE_CHOICES = [
    "Cleaning",
    "Commercial/office cleaning",
    "Carpet & upholstery cleaning",
    "Window washing",
    "Pressure washing",
    "Handyman services",
    "Plumbing",
    "Electrical services",
    "HVAC installation & maintenance",
    "Appliance repair",
    "Landscaping & lawn care",
    "Tree trimming & removal",
    "Snow removal",
    "Pool cleaning & maintenance",
    "Pest control",
    "Deep sanitation & disinfection services",
    "Mold remediation",
    "Water damage restoration",
    "Moving assistance (packing/unpacking)",
]


class StoredRow(BaseModel):
    """Base for models read back from table rows, where unset columns arrive as NULL."""

    @field_validator("*", mode="before")
    @classmethod
    def null_as_default(cls, value, info: ValidationInfo):
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class DayHours(StoredRow):
    open: str = "09:00"
    close: str = "17:00"
    closed: bool = False


class OperatingHours(BaseModel):
    monday: DayHours = Field(default_factory=DayHours)
    tuesday: DayHours = Field(default_factory=DayHours)
    wednesday: DayHours = Field(default_factory=DayHours)
    thursday: DayHours = Field(default_factory=DayHours)
    friday: DayHours = Field(default_factory=DayHours)
    saturday: DayHours = Field(default_factory=DayHours)
    sunday: DayHours = Field(default_factory=DayHours)


class SocialMedia(StoredRow):
    facebook: str = ""
    instagram: str = ""
    twitter: str = ""
    linkedin: str = ""
    thumbtack: str = ""
    yelp: str = ""


class Review(BaseModel):
    customer_name: str
    rating: int = Field(default=5, ge=1, le=5)
    comment: str
    date: Optional[datetime] = None


class BusinessProfile(StoredRow):
    id: Optional[str] = None
    user_id: Optional[str] = None
    name: str = ""
    description: str = ""
    logo_url: str = ""
    website: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    operating_hours: OperatingHours = Field(default_factory=OperatingHours)
    social_media: SocialMedia = Field(default_factory=SocialMedia)
    services: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)
    insurance_bond: str = ""
    reviews: List[Review] = Field(default_factory=list)
    google_place_id: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        from_attributes = True
        extra = "ignore"
        json_encoders = {
            datetime: lambda v: v.isoformat(),
        }

    @property
    def has_temporary_id(self) -> bool:
        return bool(self.id) and self.id.startswith(TEMP_ID_PREFIX)


class BusinessProfileUpdate(BaseModel):
    """Editable fields accepted from the dashboard form."""
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    operating_hours: Optional[OperatingHours] = None
    social_media: Optional[SocialMedia] = None
    services: Optional[List[str]] = None
    projects: Optional[List[str]] = None
    insurance_bond: Optional[str] = None
    reviews: Optional[List[Review]] = None
    google_place_id: Optional[str] = None


class ProfileStatus(str, Enum):
    unresolved = "unresolved"
    setup_required = "setup_required"
    provisional = "provisional"
    persisted = "persisted"


class ProfileState(BaseModel):
    status: ProfileStatus = ProfileStatus.unresolved
    profile: Optional[BusinessProfile] = None
    editing: bool = False
    message: Optional[str] = None

    @property
    def is_provisional(self) -> bool:
        return self.status == ProfileStatus.provisional


class SaveResult(BaseModel):
    success: bool
    profile: Optional[BusinessProfile] = None
    setup_required: bool = False
    message: str = ""

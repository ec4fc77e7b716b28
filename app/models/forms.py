from enum import Enum
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class BusinessType(str, Enum):
    cleaning = "cleaning"
    plumbing = "plumbing"
    electrical = "electrical"
    landscaping = "landscaping"
    handyman = "handyman"
    other = "other"


class YearsInBusiness(str, Enum):
    one_to_two = "1-2"
    three_to_five = "3-5"
    six_to_ten = "6-10"
    eleven_to_twenty = "11-20"
    twenty_plus = "20+"


class NominationForm(BaseModel):
    business_name: str = Field(min_length=1)
    contact_name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    business_type: BusinessType
    google_business_url: Optional[str] = None
    years_in_business: Optional[YearsInBusiness] = None
    special_achievements: Optional[str] = None


class ContactForm(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    message: str = Field(min_length=1)


class FormReceipt(BaseModel):
    reference: str
    kind: str
    message: str

"""
Static page content for the public site: membership tiers and awards.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from app.models.identity import Identity


class MembershipTier(BaseModel):
    name: str
    price: str
    period: str
    description: str
    features: List[str]
    popular: bool = False
    cta: str


class AwardCategory(BaseModel):
    name: str
    description: str
    icon: str


class AwardWinner(BaseModel):
    year: str
    category: str
    winner: str
    location: str
    rating: float
    reviews: int
    specialty: str


MEMBERSHIP_TIERS: List[MembershipTier] = [
    MembershipTier(
        name="Basic Membership",
        price="$10",
        period="per year",
        description="Perfect for individual cleaners starting their professional journey",
        features=[
            "Official TCA seal for your website",
            "Listing in the TCA member directory",
            "Access to member resources",
            "Email support",
        ],
        cta="Join Basic",
    ),
    MembershipTier(
        name="Renewal",
        price="$5",
        period="per year",
        description="Continue your TCA membership and benefits",
        features=[
            "Continued listing & seal usage",
            "Access to member resources",
            "Email support",
            "Member directory listing",
        ],
        cta="Renew Now",
    ),
    MembershipTier(
        name="Award Nomination",
        price="$20",
        period="one-time",
        description="Nominate your business for recognition based on reviews",
        features=[
            "Business nomination for awards",
            "Review score evaluation",
            "Winner announcement",
            "Award certificate if selected",
        ],
        cta="Nominate Now",
    ),
    MembershipTier(
        name="Training Subscription",
        price="$30",
        period="per month",
        description="Access to all training materials & certifications",
        features=[
            "Full training library access",
            "Video courses & PDFs",
            "Professional certifications",
            "Priority support",
            "Monthly webinars",
        ],
        popular=True,
        cta="Subscribe Now",
    ),
]

AWARD_CATEGORIES: List[AwardCategory] = [
    AwardCategory(name="Excellence in Services", description="Recognizing outstanding service providers", icon="/award-residential.svg"),
    AwardCategory(name="Outstanding Commercial Services", description="Awarding excellence in commercial and industrial service projects", icon="/award-commercial.svg"),
    AwardCategory(name="Customer Service Champion", description="Celebrating exceptional customer service and client satisfaction", icon="/award-customer.svg"),
    AwardCategory(name="Innovation in Services", description="Honoring innovative approaches, techniques, or technologies", icon="/award-innovation.svg"),
    AwardCategory(name="Sustainability & Green Practices", description="Recognizing eco-friendly and environmentally conscious practices", icon="/award-green.svg"),
    AwardCategory(name="Rising Star Award", description="Celebrating new businesses with exceptional potential and early achievements", icon="/award-rising.svg"),
]

AWARD_WINNERS: List[AwardWinner] = [
    AwardWinner(year="2024", category="Excellence in Services", winner="Sparkle Services", location="New York, NY", rating=4.9, reviews=247, specialty="Premium service solutions"),
    AwardWinner(year="2024", category="Outstanding Commercial Services", winner="Elite Commercial Services", location="Los Angeles, CA", rating=4.8, reviews=189, specialty="Large-scale commercial projects"),
    AwardWinner(year="2024", category="Customer Service Champion", winner="Fresh Start Services", location="Chicago, IL", rating=4.9, reviews=156, specialty="Eco-friendly and client-focused services"),
    AwardWinner(year="2023", category="Innovation in Services", winner="Green Home Solutions", location="Austin, TX", rating=4.7, reviews=134, specialty="Sustainable service technology and methods"),
]

FREE_MEMBER = "Free Member"
YEARLY_MEMBER = "Yearly Member"
YEARLY_EXPIRED = "Yearly Expired"
YEARLY_ACTIVE = "Yearly Active"


def membership_status(identity: Optional[Identity], now: datetime) -> str:
    if identity is None or not identity.membership_tier or identity.membership_tier == "free":
        return FREE_MEMBER
    if identity.membership_expires is None:
        return YEARLY_MEMBER
    expires = identity.membership_expires
    if expires.tzinfo is None and now.tzinfo is not None:
        expires = expires.replace(tzinfo=now.tzinfo)
    return YEARLY_EXPIRED if expires < now else YEARLY_ACTIVE

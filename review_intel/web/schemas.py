"""
Request Bodies
==============

Pydantic models for the JSON API. Ratings are typed loosely on purpose so
the intake pipeline, not the framework, decides what a bad rating is and
answers with its own 400.
"""

from typing import Any, List, Optional

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    username: str
    email: str
    name: str
    password: str
    role: Optional[str] = None
    phone: str = ""


class LoginRequest(BaseModel):
    # Username or email
    username: str
    password: str


class PropertyCreateRequest(BaseModel):
    id: str
    name: str
    location: str = ""
    rating: Optional[float] = None
    city: str = ""
    tagline: str = ""
    badge: Optional[str] = None


class ReviewSubmitRequest(BaseModel):
    property_id: Optional[str] = None
    text: Optional[str] = None
    rating: Any = None
    author: Optional[str] = None
    author_phone: Optional[str] = None
    source: Optional[str] = None
    categories: Optional[List[str]] = None
    category: Optional[str] = None
    sentiment: Optional[str] = None
    urgency: Optional[str] = None
    urgency_reason: Optional[str] = None
    festival_tag: Optional[str] = None


class ReportSpamRequest(BaseModel):
    reported_by: Optional[str] = None


class SendAlertRequest(BaseModel):
    review_id: str
    guest_phone: Optional[str] = None
    guest_name: Optional[str] = None


class SendDirectAlertRequest(BaseModel):
    guest_phone: Optional[str] = None
    guest_name: Optional[str] = None
    hotel_name: Optional[str] = None
    rating: Any = 1

"""
Shared fixtures: an in-memory store seeded with two hotels, a notifier that
records what it was asked to send, and services wired on top of them.
"""

from typing import List, Optional

import pytest

from review_intel.application import AccountService, ReviewService
from review_intel.domain.models import DeliveryResult, GuestAlert, Property, Review
from review_intel.infrastructure.config import NotifierSettings
from review_intel.infrastructure.messaging import Notifier
from review_intel.infrastructure.persistence import MemoryStore

TEST_SALT = "test_salt"


class RecordingNotifier(Notifier):
    """Notifier double: remembers every alert and answers with a fixed status."""

    channel = "recording"

    def __init__(self, status: str = "sent", error: Optional[Exception] = None):
        super().__init__(NotifierSettings(brand_name="Test Hotels"))
        self.status = status
        self.error = error
        self.alerts: List[GuestAlert] = []

    def send_guest_alert(self, alert: GuestAlert) -> List[DeliveryResult]:
        self.alerts.append(alert)
        if self.error:
            raise self.error
        return [DeliveryResult(channel=self.channel, status=self.status, to=alert.phone)]


@pytest.fixture
def store():
    store = MemoryStore()
    store.insert("properties", Property(
        id="mh001", name="W Marriott Juhu", location="Mumbai, Maharashtra",
        rating=4.7, city="Mumbai",
    ).to_dict())
    store.insert("properties", Property(
        id="mh003", name="JW Marriott Bangalore", location="Bengaluru, Karnataka",
        rating=4.6, city="Bangalore",
    ).to_dict())
    return store


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(store, notifier):
    return ReviewService(store, notifier)


@pytest.fixture
def accounts(store):
    return AccountService(store, TEST_SALT)


@pytest.fixture
def make_review():
    """Factory for Review objects with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides) -> Review:
        counter["n"] += 1
        fields = {
            "id": f"r{counter['n']}",
            "property_id": "mh001",
            "rating": 4,
            "text": "Comfortable room and a friendly team.",
            "sentiment": "positive",
        }
        fields.update(overrides)
        return Review(**fields)

    return _make

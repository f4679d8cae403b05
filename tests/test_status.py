from datetime import timedelta

import pytest

from aupgrab.models.base import utcnow
from aupgrab.services.status import progress_estimate, project_status


@pytest.mark.parametrize(
    "order_status, delivery_status, expected",
    [
        ("pending", "waiting_for_rider", "pending"),
        ("confirmed", "rider_assigned", "assigned"),
        ("confirmed", "waiting_for_rider", "assigned"),
        ("pending", "rider_assigned", "assigned"),
        ("confirmed", "on_the_way", "picked_up"),
        ("pending", "on_the_way", "picked_up"),
        ("confirmed", "delivered", "delivered"),
        ("delivered", "on_the_way", "delivered"),
        ("pending", "cancelled", "cancelled"),
        ("cancelled", "delivered", "cancelled"),
        ("delivered", "cancelled", "cancelled"),
        ("", "", "pending"),
        (None, None, "pending"),
    ],
)
def test_project_status(order_status, delivery_status, expected):
    assert project_status(order_status, delivery_status) == expected


@pytest.mark.parametrize(
    "status, progress",
    [
        ("waiting_for_rider", 10),
        ("rider_assigned", 40),
        ("on_the_way", 75),
        ("delivered", 100),
        ("cancelled", 20),
    ],
)
def test_progress_by_status(status, progress):
    assert progress_estimate(status)["progress"] == progress


def test_eta_fallbacks_without_estimated_arrival():
    assert progress_estimate("on_the_way")["etaMinutes"] == 20
    assert progress_estimate("rider_assigned")["etaMinutes"] == 30
    assert progress_estimate("waiting_for_rider")["etaMinutes"] == 30


def test_eta_from_estimated_arrival():
    now = utcnow()
    estimate = progress_estimate("on_the_way", now + timedelta(minutes=12), now=now)
    assert estimate == {"progress": 75, "etaMinutes": 12}


def test_eta_in_the_past_is_floored_at_zero():
    now = utcnow()
    estimate = progress_estimate("on_the_way", now - timedelta(minutes=5), now=now)
    assert estimate["etaMinutes"] == 0


def test_eta_accepts_naive_datetimes_as_utc():
    now = utcnow()
    naive = (now + timedelta(minutes=30)).replace(tzinfo=None)
    assert progress_estimate("rider_assigned", naive, now=now)["etaMinutes"] == 30

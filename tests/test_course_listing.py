"""
Unit tests for CourseListing and CourseCard

Tests:
- Render policy for sold-out courses
- Full replacement on re-activation
- Stale activations are dropped
- Fetch failures keep the previous collection
"""

from unittest.mock import Mock

import pytest

from classbook.listing import DEFAULT_STYLE, SOLD_OUT_STYLE, CourseListing
from classbook.services.courses import CourseService, FetchError
from classbook.state import CourseRecord


def _course(name, seats):
    return CourseRecord(name=name, instructor="Jane", available_seats=seats, price=20.0, image="")


@pytest.fixture
def service():
    return Mock(spec=CourseService)


def test_sold_out_card_is_flagged_and_disabled(service):
    service.fetch_courses.return_value = [_course("Yoga", 0), _course("Chess", 5)]
    listing = CourseListing(service)
    listing.load_courses()

    yoga, chess = listing.cards()
    assert yoga.name == "Yoga"
    assert yoga.sold_out
    assert not yoga.action_enabled
    assert yoga.style == SOLD_OUT_STYLE
    assert chess.action_enabled
    assert chess.style == DEFAULT_STYLE


def test_load_courses_returns_one_shot_iterator(service):
    service.fetch_courses.return_value = [_course("Yoga", 0), _course("Chess", 5)]
    listing = CourseListing(service)

    courses = listing.load_courses()
    assert [course.name for course in courses] == ["Yoga", "Chess"]
    assert list(courses) == []


def test_reactivation_fetches_once_and_replaces(service):
    service.fetch_courses.side_effect = [
        [_course("Yoga", 0), _course("Chess", 5)],
        [_course("Pottery", 3)],
    ]
    listing = CourseListing(service)

    listing.load_courses()
    assert service.fetch_courses.call_count == 1

    names = [course.name for course in listing.load_courses()]
    assert service.fetch_courses.call_count == 2
    assert names == ["Pottery"]
    assert [course.name for course in listing.courses] == ["Pottery"]


def test_fetch_failure_keeps_previous_collection(service):
    service.fetch_courses.side_effect = [[_course("Chess", 5)], FetchError("boom")]
    listing = CourseListing(service)
    listing.load_courses()

    courses = list(listing.load_courses())

    assert [course.name for course in courses] == ["Chess"]
    assert isinstance(listing.last_error, FetchError)


def test_first_fetch_failure_leaves_empty_listing(service):
    service.fetch_courses.side_effect = FetchError("boom")
    listing = CourseListing(service)

    assert list(listing.load_courses()) == []
    assert listing.cards() == []


def test_stale_activation_is_ignored(service):
    listing = CourseListing(service)
    stale = listing.activate()
    current = listing.activate()

    assert not listing.apply(stale, [_course("Old", 1)])
    assert listing.courses == ()
    assert listing.apply(current, [_course("New", 1)])
    assert [course.name for course in listing.courses] == ["New"]


def test_deactivate_drops_pending_fetch(service):
    listing = CourseListing(service)
    generation = listing.activate()

    def fetch():
        listing.deactivate()
        return [_course("Late", 2)]

    service.fetch_courses.side_effect = fetch

    assert listing.fetch(generation) is False
    assert listing.courses == ()


def test_stale_failure_does_not_set_error(service):
    listing = CourseListing(service)
    generation = listing.activate()

    def fetch():
        listing.deactivate()
        raise FetchError("late failure")

    service.fetch_courses.side_effect = fetch

    assert listing.fetch(generation) is False
    assert listing.last_error is None


def test_fail_keeps_collection_for_current_activation(service):
    listing = CourseListing(service)
    listing.apply(listing.activate(), [_course("Chess", 5)])
    generation = listing.activate()

    assert listing.fail(generation, FetchError("down")) is False
    assert [course.name for course in listing.courses] == ["Chess"]
    assert isinstance(listing.last_error, FetchError)


def test_fail_for_stale_activation_is_ignored(service):
    listing = CourseListing(service)
    stale = listing.activate()
    listing.deactivate()

    listing.fail(stale, FetchError("late"))

    assert listing.last_error is None

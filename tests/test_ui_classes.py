"""
Unit tests for the class page refresh in MainWindow

Tests:
- Network work off the Tk thread touches no listing state
- Results applied on the Tk thread only for the current activation
- Empty results clear the previous cards
- Fetch failures keep the previous cards on screen
"""

from concurrent.futures import Future
from unittest.mock import MagicMock, Mock, patch

import pytest

pytest.importorskip("tkinter")

from classbook.listing import CourseListing  # noqa: E402
from classbook.services.courses import CourseService, FetchError  # noqa: E402
from classbook.state import CourseRecord  # noqa: E402
from classbook.ui import app  # noqa: E402


def _course(name, seats=3, image=""):
    return CourseRecord(name=name, instructor="Jane", available_seats=seats, price=10.0, image=image)


def _done(result=None, error=None):
    future = Future()
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)
    return future


@pytest.fixture
def window():
    window = MagicMock()
    window._listing = CourseListing(Mock(spec=CourseService))
    return window


@patch("classbook.ui.app._download")
def test_worker_only_fetches_and_downloads(mock_download):
    service = Mock(spec=CourseService)
    service.fetch_courses.return_value = [_course("Yoga", image="http://x/y.png")]
    mock_download.return_value = b"png"

    courses, images = app._fetch_classes(service)

    assert [course.name for course in courses] == ["Yoga"]
    assert images == {"Yoga": b"png"}
    mock_download.assert_called_once_with("http://x/y.png")


def test_worker_propagates_fetch_error():
    service = Mock(spec=CourseService)
    service.fetch_courses.side_effect = FetchError("down")

    with pytest.raises(FetchError):
        app._fetch_classes(service)


def test_poll_applies_current_result_and_renders(window):
    generation = window._listing.activate()

    app.MainWindow._poll_classes(window, _done(([_course("Chess")], {"Chess": None})), generation)

    assert [course.name for course in window._listing.courses] == ["Chess"]
    cards, images = window._render_cards.call_args.args
    assert [card.name for card in cards] == ["Chess"]
    assert images == {"Chess": None}


def test_poll_empty_result_replaces_and_renders(window):
    window._listing.apply(window._listing.activate(), [_course("Yoga")])
    generation = window._listing.activate()

    app.MainWindow._poll_classes(window, _done(([], {})), generation)

    assert window._listing.courses == ()
    window._render_cards.assert_called_once_with([], {})


def test_poll_ignores_superseded_activation(window):
    window._listing.apply(window._listing.activate(), [_course("Yoga")])
    stale = window._listing.activate()
    window._listing.deactivate()

    app.MainWindow._poll_classes(window, _done(([_course("Late")], {})), stale)

    assert [course.name for course in window._listing.courses] == ["Yoga"]
    window._render_cards.assert_not_called()


def test_poll_failure_keeps_previous_cards(window):
    window._listing.apply(window._listing.activate(), [_course("Yoga")])
    generation = window._listing.activate()

    app.MainWindow._poll_classes(window, _done(error=FetchError("down")), generation)

    assert [course.name for course in window._listing.courses] == ["Yoga"]
    assert isinstance(window._listing.last_error, FetchError)
    window._render_cards.assert_not_called()


def test_poll_reschedules_until_done(window):
    pending = Future()

    app.MainWindow._poll_classes(window, pending, 1)

    window.root.after.assert_called_once_with(app.POLL_INTERVAL_MS, window._poll_classes, pending, 1)
    window._render_cards.assert_not_called()


def test_render_empty_list_clears_previous_cards(window):
    old_card = MagicMock()
    window._cards_frame.winfo_children.return_value = [old_card]

    app.MainWindow._render_cards(window, [], {})

    old_card.destroy.assert_called_once()
    window._card_photos.clear.assert_called_once()

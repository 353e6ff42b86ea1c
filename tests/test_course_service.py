"""Unit tests for CourseService"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from classbook.services.courses import CourseService, FetchError


def _response(payload=None, status_error=None, json_error=None):
    response = MagicMock()
    if status_error:
        response.raise_for_status.side_effect = status_error
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@patch("classbook.services.courses.requests.get")
def test_fetch_courses_single_plain_get(mock_get, config):
    mock_get.return_value = _response(
        [
            {"name": "Yoga", "instructor": "Jane", "availableSeats": 0, "price": 25, "image": "http://x/y.png"},
            {"name": "Chess", "instructor": "Bob", "availableSeats": 5, "price": 10.5, "image": "http://x/c.png"},
        ]
    )

    courses = CourseService(config).fetch_courses()

    mock_get.assert_called_once_with("http://localhost:5000/classes", timeout=30)
    assert [course.name for course in courses] == ["Yoga", "Chess"]
    assert courses[0].available_seats == 0
    assert courses[0].is_full
    assert courses[1].price == 10.5
    assert courses[1].instructor == "Bob"


@patch("classbook.services.courses.requests.get")
def test_network_error_raises_fetch_error(mock_get, config):
    mock_get.side_effect = requests.ConnectionError("refused")

    with pytest.raises(FetchError):
        CourseService(config).fetch_courses()


@patch("classbook.services.courses.requests.get")
def test_http_error_raises_fetch_error(mock_get, config):
    mock_get.return_value = _response(status_error=requests.HTTPError("500"))

    with pytest.raises(FetchError):
        CourseService(config).fetch_courses()


@patch("classbook.services.courses.requests.get")
def test_invalid_json_raises_fetch_error(mock_get, config):
    mock_get.return_value = _response(json_error=ValueError("not json"))

    with pytest.raises(FetchError, match="JSON"):
        CourseService(config).fetch_courses()


@patch("classbook.services.courses.requests.get")
def test_non_list_payload_rejected(mock_get, config):
    mock_get.return_value = _response({"classes": []})

    with pytest.raises(FetchError):
        CourseService(config).fetch_courses()


@pytest.mark.parametrize(
    "item",
    [
        {"instructor": "Jane", "availableSeats": 1},
        {"name": "Yoga", "availableSeats": -1},
        {"name": "Yoga", "availableSeats": "3"},
        {"name": "Yoga", "availableSeats": 2.5},
        "Yoga",
    ],
)
@patch("classbook.services.courses.requests.get")
def test_malformed_course_rejected(mock_get, item, config):
    mock_get.return_value = _response([item])

    with pytest.raises(FetchError):
        CourseService(config).fetch_courses()

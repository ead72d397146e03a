import pytest

from app.core.enum import MeetingType
from app.libs.formats.datetime import clock_minutes
from app.libs.formats.meeting import (
    detect_meeting_type,
    extract_meeting_id,
    get_embed_url,
    is_valid_meeting_url,
)
from app.libs.formats.text import extract_youtube_id, first_name, is_valid_email, parent_email


@pytest.mark.parametrize(
    "url, expected_type, expected_id",
    [
        ("https://zoom.us/j/1234567890", MeetingType.ZOOM, "1234567890"),
        ("https://us02web.zoom.us/j/98765432101?pwd=abc", MeetingType.ZOOM, "98765432101"),
        ("https://meet.google.com/abc-defg-hij", MeetingType.GOOGLE_MEET, "abc-defg-hij"),
        ("https://meet.google.com/abc-defg-hij?authuser=0", MeetingType.GOOGLE_MEET, "abc-defg-hij"),
    ],
)
def test_meeting_links_are_recognised(url, expected_type, expected_id):
    assert detect_meeting_type(url) is expected_type
    assert extract_meeting_id(url) == expected_id
    assert is_valid_meeting_url(url)


@pytest.mark.parametrize(
    "url",
    [
        "https://zoom.us/j/1234",  # id too short
        "https://meet.google.com/abc",  # code too short
        "https://example.com/meeting/1234567890",
        "",
    ],
)
def test_unsupported_meeting_links(url):
    assert detect_meeting_type(url) is None
    assert extract_meeting_id(url) is None
    assert not is_valid_meeting_url(url)


def test_embed_urls():
    assert get_embed_url("1234567890", "zoom") == "https://zoom.us/meeting/join/1234567890"
    assert get_embed_url("abc-defg-hij", "google_meet") == "https://meet.google.com/abc-defg-hij"
    assert get_embed_url("x", "teams") is None


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://youtube.com/shorts/dQw4w9WgXcQ",
        "dQw4w9WgXcQ",
    ],
)
def test_youtube_ids(url):
    assert extract_youtube_id(url) == "dQw4w9WgXcQ"


def test_youtube_id_rejects_other_links():
    assert extract_youtube_id("https://vimeo.com/12345") is None
    assert extract_youtube_id("") is None


def test_email_and_parent_helpers():
    assert is_valid_email("student@example.com")
    assert not is_valid_email("student@example")
    assert not is_valid_email(None)
    assert first_name("  Omar Khaled Hassan ") == "Omar"
    assert parent_email("+201001112222", "mhm.academy") == "parent_201001112222@mhm.academy"


def test_clock_minutes():
    assert clock_minutes("00:00") == 0
    assert clock_minutes("09:30") == 570
    assert clock_minutes("23:59") == 1439

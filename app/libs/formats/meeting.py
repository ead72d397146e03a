import re
from typing import Optional

from app.core.enum import MeetingType

ZOOM_PATTERNS = [
    re.compile(r"zoom\.us/(?:j|my|s)/([0-9]+)"),
    re.compile(r"zoom\.us/meeting/join/([0-9]+)"),
    re.compile(r"zoom\.us/webinar/join/([0-9]+)"),
    re.compile(r"zoom\.us/rec/share/([0-9]+)"),
    re.compile(r"zoom\.us/rec/play/([0-9]+)"),
]
ZOOM_ID_RE = re.compile(r"^[0-9]{9,11}$")

MEET_PATTERN = re.compile(r"meet\.google\.com/([a-z0-9-]+)", re.IGNORECASE)
MEET_ID_RE = re.compile(r"^[a-z0-9-]+$", re.IGNORECASE)


def extract_zoom_meeting_id(url: str) -> Optional[str]:
    for pattern in ZOOM_PATTERNS:
        match = pattern.search(url or "")
        if match:
            return match.group(1)
    return None


def is_valid_zoom_url(url: str) -> bool:
    meeting_id = extract_zoom_meeting_id(url)
    return meeting_id is not None and ZOOM_ID_RE.match(meeting_id) is not None


def extract_google_meet_id(url: str) -> Optional[str]:
    match = MEET_PATTERN.search(url or "")
    if not match:
        return None
    return re.split(r"[?&]", match.group(1))[0]


def is_valid_google_meet_url(url: str) -> bool:
    meeting_id = extract_google_meet_id(url)
    return (
        meeting_id is not None
        and len(meeting_id) >= 8
        and MEET_ID_RE.match(meeting_id) is not None
    )


def detect_meeting_type(url: str) -> Optional[MeetingType]:
    if is_valid_zoom_url(url):
        return MeetingType.ZOOM
    if is_valid_google_meet_url(url):
        return MeetingType.GOOGLE_MEET
    return None


def extract_meeting_id(url: str) -> Optional[str]:
    meeting_type = detect_meeting_type(url)
    if meeting_type is MeetingType.ZOOM:
        return extract_zoom_meeting_id(url)
    if meeting_type is MeetingType.GOOGLE_MEET:
        return extract_google_meet_id(url)
    return None


def is_valid_meeting_url(url: str) -> bool:
    return detect_meeting_type(url) is not None


def get_embed_url(meeting_id: str, meeting_type: str) -> Optional[str]:
    if meeting_type == MeetingType.ZOOM.value:
        return f"https://zoom.us/meeting/join/{meeting_id}"
    if meeting_type == MeetingType.GOOGLE_MEET.value:
        return f"https://meet.google.com/{meeting_id}"
    return None

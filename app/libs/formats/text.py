import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def first_name(full_name: str) -> str:
    """First word of a full name (used for the parent account name)."""
    parts = (full_name or "").strip().split()
    return parts[0] if parts else ""


def parent_email(parent_phone: str, domain: str) -> str:
    return f"parent_{(parent_phone or '').replace('+', '')}@{domain}"


YOUTUBE_ID_RE = re.compile(
    r"(?:youtube\.com/(?:watch\?(?:.*&)?v=|embed/|shorts/|live/)|youtu\.be/)([A-Za-z0-9_-]{11})"
)


def extract_youtube_id(url: str) -> str | None:
    """11-char video id from watch, embed, shorts, live and youtu.be links."""
    if not url:
        return None
    match = YOUTUBE_ID_RE.search(url)
    if match:
        return match.group(1)
    # bare id
    if re.fullmatch(r"[A-Za-z0-9_-]{11}", url.strip()):
        return url.strip()
    return None

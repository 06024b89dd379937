'''
    Turns user-supplied share links into embeddable URLs.

    Nothing here fetches or executes the URL; we only pattern-match the string.
    Malformed input never raises: the embed helpers hand the original string
    back so the page renders an inert iframe/link instead of failing.
    extract_youtube_id() is the exception in spirit: it returns None when no
    id is found, and the validator uses that as the YouTube validity check.
'''

import re

YOUTUBE_EMBED_URL = "https://www.youtube.com/embed/{id}"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={id}"
DRIVE_FILE_PREVIEW_URL = "https://drive.google.com/file/d/{id}/preview"
DOCS_DOCUMENT_PREVIEW_URL = "https://docs.google.com/document/d/{id}/preview"

GOOGLE_DRIVE_TYPES = ("gdrive_pdf", "gdrive_word")
YOUTUBE_TYPE = "youtube"

# Scanned in order, first match wins. Video ids are exactly 11 chars.
YOUTUBE_PATTERNS = (
    re.compile(r'(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([A-Za-z0-9_-]{11})'),
    re.compile(r'youtube\.com/shorts/([A-Za-z0-9_-]{11})'),
)

# The file pattern skips ids that sit under /document/, so Docs links keep
# their own preview host instead of being rewritten to drive.google.com.
DRIVE_PATTERNS = (
    (re.compile(r'(?<!/document)/d/([A-Za-z0-9_-]+)'), DRIVE_FILE_PREVIEW_URL),
    (re.compile(r'/document/d/([A-Za-z0-9_-]+)'), DOCS_DOCUMENT_PREVIEW_URL),
)

_SLUG_STRIP = re.compile(r'[^a-z0-9\s-]')
_SLUG_COLLAPSE = re.compile(r'[\s-]+')


def extract_youtube_id(url):
    """Return the 11-character video id from a YouTube link, or None."""
    if not url:
        return None
    for pattern in YOUTUBE_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def to_youtube_embed_url(url):
    video_id = extract_youtube_id(url)
    if video_id is None:
        # might already be an embed URL, or something we can't read
        return url
    return YOUTUBE_EMBED_URL.format(id=video_id)


def youtube_watch_url(url):
    """Canonical watch page for the "open on YouTube" link."""
    video_id = extract_youtube_id(url)
    if video_id is None:
        return url
    return YOUTUBE_WATCH_URL.format(id=video_id)


def to_google_drive_embed_url(url):
    if not url:
        return url
    for pattern, template in DRIVE_PATTERNS:
        match = pattern.search(url)
        if match:
            return template.format(id=match.group(1))
    return url


def slugify(text):
    """
    Lowercase, drop anything outside [a-z0-9 whitespace -], then collapse
    whitespace/hyphen runs into one hyphen and trim hyphens at both ends.

    Lowercasing happens first so "ABC" keeps its letters. The output always
    matches ^[a-z0-9]+(-[a-z0-9]+)*$ or is empty, and slugify is idempotent.
    """
    text = (text or '').lower()
    text = _SLUG_STRIP.sub('', text)
    text = _SLUG_COLLAPSE.sub('-', text)
    return text.strip('-')


def normalize_reference_for_display(file_type, file_url):
    """
    Embed URL for a material's stored reference.

    Google Drive types go through the Drive/Docs preview rewrite, YouTube
    through the embed rewrite. Anything else (images, unknown types) is
    passed through untouched.
    """
    if not file_url:
        return file_url
    if file_type in GOOGLE_DRIVE_TYPES:
        return to_google_drive_embed_url(file_url)
    if file_type == YOUTUBE_TYPE:
        return to_youtube_embed_url(file_url)
    return file_url

import math
import re


def generate_slug(title):
    """
    Turn a title into a URL-safe identifier.

    Two titles that normalize the same way get the same slug; callers that
    need uniqueness must check for collisions themselves.
    """
    slug = (title or '').lower()
    slug = re.sub(r'[^a-z0-9 -]', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


def calculate_read_time(content, words_per_minute=200):
    """Estimated minutes to read `content`."""
    words = (content or '').split()
    if not words:
        return 0
    return math.ceil(len(words) / words_per_minute)


def generate_excerpt(content, max_length=160):
    """Plain-text preview, cut on a word boundary."""
    plain_text = re.sub(r'<[^>]*>', '', content or '').strip()

    if len(plain_text) <= max_length:
        return plain_text

    truncated = plain_text[:max_length]
    last_space = truncated.rfind(' ')
    if last_space > 0:
        return truncated[:last_space] + '...'
    return truncated + '...'

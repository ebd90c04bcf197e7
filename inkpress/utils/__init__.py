"""Utility helper functions."""

from inkpress.utils.helpers import host, route_label, utc_now
from inkpress.utils.slugify import MAX_SLUG_LENGTH, next_free_slug, slugify

__all__ = [
    "MAX_SLUG_LENGTH",
    "host",
    "next_free_slug",
    "route_label",
    "slugify",
    "utc_now",
]

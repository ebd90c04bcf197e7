"""URL slug generation for posts and categories."""

from re import ASCII, compile

_WHITESPACE = compile(r"\s+")
_NON_WORD = compile(r"[^\w\-]+", ASCII)
_MULTI_HYPHEN = compile(r"-{2,}")
_SUFFIXED = compile(r"^(?P<base>.+)-(?P<n>\d+)$")

# Leaves room for a "-N" suffix while keeping unique index entries small
MAX_SLUG_LENGTH = 200


def slugify(text: str, max_length: int | None = None) -> str:
    """
    Generate a URL-friendly slug from a string.

    The transform is lossy and idempotent: ``slugify(slugify(x)) == slugify(x)``.

    Args:
        text: Title or name to convert.
        max_length: Optional cap; the slug is cut on a character boundary and
            any trailing hyphen dropped.

    Returns:
        str: Lowercase, hyphenated slug (may be empty for punctuation-only input).

    Examples:
    --------
    >>> slugify("Hello World")
    'hello-world'
    >>> slugify("  Next.js 15 -- What's new?  ")
    'nextjs-15-whats-new'
    """
    slug = str(text).lower().strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _NON_WORD.sub("", slug)
    slug = _MULTI_HYPHEN.sub("-", slug).strip("-")
    if max_length is not None:
        slug = slug[:max_length].rstrip("-")
    return slug


def next_free_slug(base: str, taken: set[str]) -> str:
    """
    Pick ``base`` or the first ``base-N`` (N >= 2) not present in ``taken``.

    Args:
        base: Candidate slug.
        taken: Slugs already used by other records.

    Returns:
        str: A slug not in ``taken``.
    """
    if base not in taken:
        return base

    used_suffixes = set()
    for slug in taken:
        if (found := _SUFFIXED.match(slug)) and found["base"] == base:
            used_suffixes.add(int(found["n"]))

    suffix = 2
    while suffix in used_suffixes:
        suffix += 1
    return f"{base}-{suffix}"

import re
import unicodedata

_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """
    Return a URL-safe, lowercase ASCII slug derived from *text*.

    Accented characters are folded to their ASCII base letter, every run of
    other characters becomes a single hyphen and hyphens are trimmed from
    both ends, so ``slugify(slugify(x)) == slugify(x)``.  Text without any
    ASCII-foldable alphanumerics yields an empty string.
    """
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return _SLUG_SEPARATOR_RE.sub("-", text.lower()).strip("-")

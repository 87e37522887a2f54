import re
from datetime import datetime

RFC3339_ERROR = "Invalid date format. Use RFC3339 format."

# date "T" time with seconds, optional fraction, mandatory offset
_RFC3339_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(?P<fraction>\.\d{1,6})?(?:[Zz]|[+-]\d{2}:\d{2})"
)


def parse_rfc3339(value: str) -> datetime:
    """
    Parse an RFC 3339 date-time such as ``2024-05-01T10:00:00Z`` or
    ``2024-05-01T12:00:00.250+02:00`` into an aware ``datetime``.

    Anything else, including ISO 8601 forms outside RFC 3339 (week dates,
    basic format, missing seconds or offset), raises ``ValueError``.
    """
    match = _RFC3339_RE.fullmatch(value)
    if match is None:
        raise ValueError(RFC3339_ERROR)
    fmt = "%Y-%m-%dT%H:%M:%S.%f%z" if match.group("fraction") else "%Y-%m-%dT%H:%M:%S%z"
    try:
        return datetime.strptime(value.upper(), fmt)
    except ValueError as exc:
        raise ValueError(RFC3339_ERROR) from exc

"""Input cleaning applied to free-text fields before validation.

Plain-text fields lose quotes, control characters, script blocks and inline
event handlers. Fields listed as HTML keep their markup minus anything that
can execute.
"""

import re
from typing import Any, Iterable

_CONTROL_CHARS = re.compile(r"[\x00\x08\t\n\r\x1a]")
_QUOTES = re.compile(r"['\"]")
_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_EVENT_ATTR = re.compile(r"\s*on\w+\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

_JS_PROTOCOL = re.compile(r"(javascript|vbscript):", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)
_EMBED_BLOCK = re.compile(
    r"<(iframe|object|embed)\b[^<]*(?:(?!</\1>)<[^<]*)*</\1>", re.IGNORECASE
)
_FORM_TAGS = re.compile(r"<(form|input|button|textarea|select|option)\b[^>]*>", re.IGNORECASE)

_EMAIL = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_PHONE_JUNK = re.compile(r"[^\d\s\-+()]")


def sanitize_string(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    value = _CONTROL_CHARS.sub(" ", value)
    value = _QUOTES.sub("", value)
    value = _SCRIPT_BLOCK.sub("", value)
    value = _EVENT_ATTR.sub("", value)
    return _WHITESPACE.sub(" ", value).strip()


def sanitize_html(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    value = _SCRIPT_BLOCK.sub("", value)
    value = _JS_PROTOCOL.sub("", value)
    value = _EVENT_HANDLER.sub("", value)
    value = _EMBED_BLOCK.sub("", value)
    value = _FORM_TAGS.sub("", value)
    return value.strip()


def sanitize_object(
    data: Any,
    html_fields: Iterable[str] = (),
    skip_fields: Iterable[str] = (),
    max_length: int = 10000,
) -> Any:
    if not isinstance(data, dict):
        return data

    html_fields = set(html_fields)
    skip_fields = set(skip_fields)
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        if key in skip_fields:
            sanitized[key] = value
        elif isinstance(value, dict):
            sanitized[key] = sanitize_object(value, html_fields, skip_fields, max_length)
        elif isinstance(value, list):
            sanitized[key] = [_sanitize_item(item, html_fields, skip_fields, max_length) for item in value]
        elif isinstance(value, str):
            clean = sanitize_html(value) if key in html_fields else sanitize_string(value)
            sanitized[key] = clean[:max_length]
        else:
            sanitized[key] = value

    return sanitized


def _sanitize_item(item: Any, html_fields: set, skip_fields: set, max_length: int) -> Any:
    if isinstance(item, dict):
        return sanitize_object(item, html_fields, skip_fields, max_length)
    if isinstance(item, str):
        return sanitize_string(item)[:max_length]
    return item


def sanitize_email(email: Any) -> str | None:
    """Normalized address, or None when it does not look like one."""
    if not email or not isinstance(email, str):
        return None
    clean = email.lower().strip()[:254]
    return clean if _EMAIL.match(clean) else None


def sanitize_phone(phone: Any) -> str | None:
    if not phone or not isinstance(phone, str):
        return None
    cleaned = _PHONE_JUNK.sub("", phone).strip()[:20]
    digits = re.sub(r"\D", "", cleaned)
    return cleaned if len(digits) >= 7 else None

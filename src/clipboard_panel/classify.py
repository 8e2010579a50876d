"""Content classification: infer a semantic display type from raw clipboard text.

Rules are evaluated in a fixed priority order and the first match wins:

    1. empty               blank after trimming
    2. file list           structured companion is a non-empty sequence
    3. declared files      JSON array (companion, then content) or line split
    4. data URL            ``data:<mime>;base64,<payload>``
    5. color               hex / rgb[a]() / hsl[a]()
    6. URL                 allow-listed scheme that parses (mailto, file, web)
    7. email               ``local@domain.tld``
    8. phone               optional ``+``, grouped digits
    9. IPv4                strict 0-255 octets
   10. verification code   4-8 bare digits
   11. directory path      Windows / Unix directory or trailing separator
   12. file path           Windows / Unix absolute / ``~/`` relative
   13. JSON                ``{``/``[`` prefix that parses
   14. HTML                ``<...>`` containing a tag
   15. code                multi-line with ``;{}` `` or declaration patterns
   16. text                fallback, labelled by the declared base type

Text heuristics only run when the declared base type is absent, unknown, or
itself textual; URL rules additionally run for ``url`` and path rules for
``file``/``files``. Classification never raises: a candidate that fails to
parse simply does not match.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Sequence
from typing import Any
from urllib.parse import SplitResult, unquote, urlsplit

from clipboard_panel.models import (
    BASE_TYPES,
    DEFAULT_MAX_PREVIEW_LENGTH,
    ContentInfo,
    ContentMeta,
)

EMPTY_PREVIEW = "(empty)"
ELLIPSIS = "…"
FILE_LIST_SEPARATOR = " · "

TYPE_LABELS: dict[str, str] = {
    "empty": "Empty",
    "color": "Color",
    "data-url-image": "Image data",
    "data-url": "Data URL",
    "url": "Link",
    "email": "Email address",
    "email-link": "Email link",
    "phone": "Phone number",
    "ip-address": "IP address",
    "verification-code": "Verification code",
    "file-uri": "File link",
    "file-path": "File path",
    "folder-path": "Folder path",
    "json": "JSON",
    "html": "HTML",
    "code": "Code snippet",
    "text": "Text",
}

TYPE_ICONS: dict[str, str] = {
    "empty": "clipboard",
    "color": "color-palette",
    "data-url-image": "image",
    "data-url": "data-view",
    "url": "link",
    "email": "email",
    "email-link": "email",
    "phone": "phone",
    "ip-address": "location",
    "verification-code": "password",
    "file-uri": "document",
    "file-path": "document",
    "folder-path": "folder",
    "json": "braces",
    "html": "code",
    "code": "code",
    "text": "text",
}

BASE_TYPE_LABELS: dict[str, str] = {
    "text": "Text",
    "html": "HTML",
    "richtext": "Rich text",
    "image": "Image",
    "file": "File",
    "files": "Files",
    "url": "Link",
    "application": "Application data",
}

BASE_TYPE_ICONS: dict[str, str] = {
    "text": "text",
    "html": "code",
    "richtext": "text-style",
    "image": "image",
    "file": "document",
    "files": "document",
    "url": "link",
    "application": "application",
}

# Only these schemes count as URLs; avoids false positives like "border: 1px solid"
VALID_URL_SCHEMES = frozenset(
    {"http", "https", "ftp", "ftps", "file", "mailto", "tel", "ssh", "git"}
)
# Schemes that are meaningless without a host
_HOST_REQUIRED_SCHEMES = frozenset({"http", "https", "ftp", "ftps", "ssh"})

_DATA_URL_PATTERN = re.compile(
    r"data:(?P<mime>[\w/+.-]+);base64,(?P<data>[a-z0-9+/=\s]+)", re.IGNORECASE
)
_HEX_COLOR_PATTERN = re.compile(r"#?(?:[0-9a-f]{3,4}|[0-9a-f]{6}|[0-9a-f]{8})", re.IGNORECASE)
_RGB_COLOR_PATTERN = re.compile(
    r"rgba?\(\s*(?:(?:\d{1,3}%?|\d{1,3}\s*\.\d+%?)\s*,\s*){2}"
    r"(?:\d{1,3}%?|\d{1,3}\s*\.\d+%?)"
    r"(?:\s*,\s*(?:(?:\d+(?:\.\d+)?|\.\d+)%?))?\s*\)",
    re.IGNORECASE | re.ASCII,
)
_HSL_COLOR_PATTERN = re.compile(
    r"hsla?\(\s*\d{1,3}(?:\.\d+)?(?:deg|rad|grad|turn)?\s*,\s*\d{1,3}%\s*,\s*\d{1,3}%\s*"
    r"(?:,\s*(?:(?:\d+(?:\.\d+)?|\.\d+)%?))?\)",
    re.IGNORECASE | re.ASCII,
)
_URL_SCHEME_PATTERN = re.compile(r"[a-z][a-z0-9+.-]*:", re.IGNORECASE)
_EMAIL_PATTERN = re.compile(r"[\w.%+-]+@[a-z0-9.-]+\.[a-z]{2,}", re.IGNORECASE | re.ASCII)
_PHONE_PATTERN = re.compile(r"\+?\d{1,4}[-\s]?(?:\d{2,4}[-\s]?){1,4}\d{2,}", re.ASCII)
_IPV4_PATTERN = re.compile(
    r"(?:(?:25[0-5]|2[0-4]\d|1?\d?\d)\.){3}(?:25[0-5]|2[0-4]\d|1?\d?\d)", re.ASCII
)
_VERIFICATION_CODE_PATTERN = re.compile(r"\d{4,8}", re.ASCII)
_WINDOWS_PATH_PATTERN = re.compile(r'[a-z]:\\[^<>:"|?*\r\n]*', re.IGNORECASE)
_WINDOWS_DIRECTORY_PATTERN = re.compile(r'[a-z]:\\(?:[^<>:"|?*\r\n\\]+\\)+', re.IGNORECASE)
_UNIX_PATH_PATTERN = re.compile(r"/(?:[^\s/]+/)*[^\s/]*")
_UNIX_DIRECTORY_PATTERN = re.compile(r"/(?:[^\s/]+/)+")
_TILDE_PATH_PATTERN = re.compile(r"~/(?:[^\s/]+/)*[^\s/]*")
_CODE_PUNCTUATION_PATTERN = re.compile(r"[;{}`]")
_FUNCTION_DECLARATION_PATTERN = re.compile(r"function\s+\w+")
_CONST_DECLARATION_PATTERN = re.compile(r"\bconst\s+\w+\s*=")
_HTML_TAG_PATTERN = re.compile(r"<\w+[\s>]")
_HTML_TAG_OPEN_PATTERN = re.compile(r"<\w+")
_LINE_SPLIT_PATTERN = re.compile(r"\r?\n")
_FILE_LIST_SPLIT_PATTERN = re.compile(r"[\n;]+")
_WHITESPACE_PATTERN = re.compile(r"\s+")

_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


# ============================================================================
# Formatting helpers
# ============================================================================


def format_bytes(size: float) -> str:
    """Format a byte count in binary units (``""`` for invalid sizes)."""
    if not math.isfinite(size) or size < 0:
        return ""
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_BYTE_UNITS) - 1:
        value /= 1024
        index += 1
    display = f"{value:.0f}" if value >= 10 or index == 0 else f"{value:.1f}"
    return f"{display} {_BYTE_UNITS[index]}"


def truncate(value: str, length: int) -> str:
    """Cut ``value`` to ``length`` characters, ending with an ellipsis when cut."""
    if len(value) <= length:
        return value
    return f"{value[: max(0, length - 1)]}{ELLIPSIS}"


def cleanup_preview(value: str) -> str:
    """Collapse whitespace runs and trim."""
    return _WHITESPACE_PATTERN.sub(" ", value).strip()


def normalize_hex_color(value: str) -> str:
    """Uppercase a hex color and ensure a leading ``#``."""
    stripped = value.strip()
    return stripped.upper() if stripped.startswith("#") else f"#{stripped.upper()}"


def _js_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


# ============================================================================
# Candidate parsers (None / False means "rule does not apply")
# ============================================================================


def parse_data_url(value: str) -> tuple[str, int, bool] | None:
    """Parse a base64 data URL into ``(mime, decoded_size, is_image)``."""
    match = _DATA_URL_PATTERN.fullmatch(value)
    if match is None:
        return None
    mime = match.group("mime")
    payload = _WHITESPACE_PATTERN.sub("", match.group("data"))
    padding = len(payload) - len(payload.rstrip("="))
    size = (len(payload) * 3) // 4 - padding
    return mime, size, mime.lower().startswith("image/")


def parse_url(value: str) -> SplitResult | None:
    """Parse ``value`` as a URL with an allow-listed scheme."""
    if not _URL_SCHEME_PATTERN.match(value):
        return None
    if any(ch in value for ch in "\r\n\t"):
        return None
    try:
        parts = urlsplit(value)
        parts.port  # noqa: B018 - raises ValueError on a malformed port
    except ValueError:
        return None
    if parts.scheme.lower() not in VALID_URL_SCHEMES:
        return None
    if any(ch.isspace() for ch in parts.netloc):
        return None
    if parts.scheme.lower() in _HOST_REQUIRED_SCHEMES and not parts.hostname:
        return None
    return parts


def is_color_literal(value: str) -> bool:
    """Hex (``#`` optional for 6/8-digit forms with a letter) or functional color."""
    if _HEX_COLOR_PATTERN.fullmatch(value):
        if value.startswith("#"):
            return True
        return len(value) in (6, 8) and any(ch in "abcdefABCDEF" for ch in value)
    return bool(_RGB_COLOR_PATTERN.fullmatch(value) or _HSL_COLOR_PATTERN.fullmatch(value))


def is_phone_number(value: str) -> bool:
    """Grouped digit sequence; bare 4-8 digit runs are left to verification codes."""
    if _VERIFICATION_CODE_PATTERN.fullmatch(value):
        return False
    return bool(_PHONE_PATTERN.fullmatch(value))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_json_document(value: str) -> Any | None:
    """Return the parsed object/array when ``value`` is a JSON document."""
    trimmed = value.strip()
    if not trimmed or trimmed[0] not in "{[":
        return None
    try:
        return json.loads(trimmed, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None


def looks_like_html(value: str) -> bool:
    trimmed = value.strip()
    if not trimmed.startswith("<") or not trimmed.endswith(">"):
        return False
    return _HTML_TAG_PATTERN.search(trimmed) is not None


def looks_like_code(value: str) -> bool:
    if "\n" in value and _CODE_PUNCTUATION_PATTERN.search(value):
        return True
    if _FUNCTION_DECLARATION_PATTERN.search(value):
        return True
    return _CONST_DECLARATION_PATTERN.search(value) is not None


def _parse_json_string_array(value: Any, *, normalize: bool) -> list[str]:
    if not isinstance(value, str):
        return []
    trimmed = value.strip()
    if not trimmed.startswith("[") or not trimmed.endswith("]"):
        return []
    try:
        parsed = json.loads(trimmed)
    except (ValueError, RecursionError):
        return []
    if not isinstance(parsed, list):
        return []
    clean = cleanup_preview if normalize else str.strip
    return [entry for entry in (clean(_js_string(item)) for item in parsed) if entry]


def recover_file_list(content: str, raw: Any = None, *, normalize: bool = True) -> list[str]:
    """Recover a file list from a ``files`` record.

    Sources, first non-empty wins: JSON array in ``raw``, JSON array in
    ``content``, then ``content`` split on newlines/semicolons. With
    ``normalize`` entries are whitespace-collapsed for display; otherwise they
    are only trimmed.
    """
    candidates = _parse_json_string_array(raw, normalize=normalize)
    if candidates:
        return candidates
    candidates = _parse_json_string_array(content, normalize=normalize)
    if candidates:
        return candidates
    clean = cleanup_preview if normalize else str.strip
    parts = (clean(part) for part in _FILE_LIST_SPLIT_PATTERN.split(content or ""))
    return [part for part in parts if part]


# ============================================================================
# Classification
# ============================================================================


def _build(
    derived_type: str,
    *,
    content: str,
    base_type: str | None,
    preview: str,
    max_length: int,
    meta: list[ContentMeta],
    secondary: str | None = None,
    href: str | None = None,
    swatch: str | None = None,
    label: str | None = None,
    icon: str | None = None,
) -> ContentInfo:
    return ContentInfo(
        content=content,
        type=derived_type,
        label=label or TYPE_LABELS[derived_type],
        icon=icon or TYPE_ICONS[derived_type],
        preview_text=truncate(cleanup_preview(preview), max_length),
        base_type=base_type,
        secondary_text=secondary,
        href=href,
        color_swatch=swatch,
        meta=tuple(meta),
    )


def _file_list_info(
    entries: Sequence[str],
    *,
    content: str,
    base_type: str | None,
    max_length: int,
) -> ContentInfo:
    first = cleanup_preview(entries[0])
    extra = [item for item in (cleanup_preview(e) for e in entries[1:4]) if item]
    remainder = max(0, len(entries) - 4)
    secondary: str | None = None
    if extra:
        secondary = FILE_LIST_SEPARATOR.join(extra)
        if remainder:
            secondary = f"{secondary}{FILE_LIST_SEPARATOR}and {remainder} more"
        secondary = truncate(secondary, max_length)
    return _build(
        "file-path",
        content=content,
        base_type=base_type,
        preview=first,
        max_length=max_length,
        meta=[ContentMeta("Items", str(len(entries)))],
        secondary=secondary,
    )


def _url_info(
    parts: SplitResult,
    trimmed: str,
    *,
    content: str,
    base_type: str | None,
    max_length: int,
) -> ContentInfo:
    scheme = parts.scheme.lower()
    meta: list[ContentMeta] = []

    if scheme == "file":
        path = unquote(parts.path) or "/"
        derived = "folder-path" if parts.path.endswith("/") else "file-uri"
        if derived == "folder-path":
            meta.append(ContentMeta("Kind", "Folder"))
        meta.append(ContentMeta("Path", path))
        return _build(
            derived,
            content=content,
            base_type=base_type,
            preview=path,
            max_length=max_length,
            meta=meta,
            href=trimmed,
        )

    if scheme == "mailto":
        address = unquote(parts.path)
        if address:
            meta.append(ContentMeta("Recipient", address))
        if parts.query:
            meta.append(ContentMeta("Parameters", unquote(parts.query)))
        return _build(
            "email-link",
            content=content,
            base_type=base_type,
            preview=address or trimmed,
            max_length=max_length,
            meta=meta,
            href=trimmed,
        )

    if not parts.path and parts.netloc:
        parts = parts._replace(path="/")
    href = parts._replace(scheme=scheme).geturl()
    hostname = parts.hostname or ""
    preview = f"{hostname}{'' if parts.path == '/' else parts.path}" if hostname else href
    if parts.query:
        meta.append(ContentMeta("Query", f"?{parts.query}"))
    meta.append(ContentMeta("Protocol", scheme))
    return _build(
        "url",
        content=content,
        base_type=base_type,
        preview=preview,
        max_length=max_length,
        meta=meta,
        secondary=truncate(href, max_length),
        href=href,
    )


def classify_content(
    content: str | None,
    *,
    base_type: str | None = None,
    raw: Any = None,
    max_preview_length: int = DEFAULT_MAX_PREVIEW_LENGTH,
) -> ContentInfo:
    """Classify clipboard ``content`` into a ``ContentInfo`` descriptor.

    Args:
        content: Primary payload text.
        base_type: Declared origin kind of the record (``text``, ``image``, ...).
        raw: Structured companion (file-drop list or serialized JSON array).
        max_preview_length: Maximum preview length before ellipsis.
    """
    text = content if isinstance(content, str) else ""
    trimmed = text.strip()
    max_length = max(1, max_preview_length)

    if not trimmed:
        return ContentInfo(
            content=text,
            type="empty",
            label=TYPE_LABELS["empty"],
            icon=TYPE_ICONS["empty"],
            preview_text=EMPTY_PREVIEW,
            base_type=base_type,
        )

    known_base = base_type if base_type in BASE_TYPES else None
    allow_text = known_base is None or known_base in ("text", "richtext")
    allow_url = allow_text or known_base == "url"
    allow_path = allow_text or known_base in ("file", "files")

    if isinstance(raw, (list, tuple)) and raw:
        entries = [_js_string(item) for item in raw]
        return _file_list_info(entries, content=text, base_type=base_type, max_length=max_length)

    if known_base == "files":
        entries = recover_file_list(text, raw if isinstance(raw, str) else None)
        if entries:
            return _file_list_info(
                entries, content=text, base_type=base_type, max_length=max_length
            )

    data_url = parse_data_url(trimmed)
    if data_url is not None:
        mime, size, is_image = data_url
        size_label = format_bytes(size)
        meta: list[ContentMeta] = []
        if size_label:
            meta.append(ContentMeta("Size", size_label))
        meta.append(ContentMeta("MIME", mime))
        return _build(
            "data-url-image" if is_image else "data-url",
            content=text,
            base_type=base_type,
            preview=f"{mime}{f' · {size_label}' if size_label else ''}",
            max_length=max_length,
            meta=meta,
            secondary=truncate(trimmed, max_length),
            href=trimmed,
        )

    if allow_text and is_color_literal(trimmed):
        normalized = trimmed
        if _HEX_COLOR_PATTERN.fullmatch(trimmed):
            normalized = normalize_hex_color(trimmed)
        return _build(
            "color",
            content=text,
            base_type=base_type,
            preview=normalized,
            max_length=max_length,
            meta=[ContentMeta("Value", normalized)],
            swatch=normalized,
        )

    url = parse_url(trimmed) if allow_url else None
    if url is not None:
        return _url_info(url, trimmed, content=text, base_type=base_type, max_length=max_length)

    if allow_text and _EMAIL_PATTERN.fullmatch(trimmed):
        domain = trimmed.split("@", 1)[1]
        return _build(
            "email",
            content=text,
            base_type=base_type,
            preview=trimmed,
            max_length=max_length,
            meta=[ContentMeta("Domain", domain)] if domain else [],
            href=f"mailto:{trimmed}",
        )

    if allow_text and is_phone_number(trimmed):
        digits = re.sub(r"\D", "", trimmed)
        return _build(
            "phone",
            content=text,
            base_type=base_type,
            preview=trimmed,
            max_length=max_length,
            meta=[ContentMeta("Digits", str(len(digits)))],
            href=f"tel:{digits}" if digits else None,
        )

    if allow_text and _IPV4_PATTERN.fullmatch(trimmed):
        return _build(
            "ip-address",
            content=text,
            base_type=base_type,
            preview=trimmed,
            max_length=max_length,
            meta=[],
        )

    if allow_text and _VERIFICATION_CODE_PATTERN.fullmatch(trimmed):
        return _build(
            "verification-code",
            content=text,
            base_type=base_type,
            preview=trimmed,
            max_length=max_length,
            meta=[ContentMeta("Digits", str(len(trimmed)))],
        )

    if allow_path and (
        _WINDOWS_DIRECTORY_PATTERN.fullmatch(trimmed)
        or _UNIX_DIRECTORY_PATTERN.fullmatch(trimmed)
        or trimmed.endswith(("/", "\\"))
    ):
        return _build(
            "folder-path",
            content=text,
            base_type=base_type,
            preview=trimmed,
            max_length=max_length,
            meta=[],
        )

    if allow_path and (
        _WINDOWS_PATH_PATTERN.fullmatch(trimmed)
        or _UNIX_PATH_PATTERN.fullmatch(trimmed)
        or _TILDE_PATH_PATTERN.fullmatch(trimmed)
    ):
        return _build(
            "file-path",
            content=text,
            base_type=base_type,
            preview=trimmed,
            max_length=max_length,
            meta=[],
        )

    if allow_text:
        parsed = parse_json_document(trimmed)
        if parsed is not None:
            meta = []
            try:
                serialized = json.dumps(parsed, ensure_ascii=False, separators=(",", ":"))
                meta.append(ContentMeta("Size", f"{len(serialized)} chars"))
            except (ValueError, RecursionError):
                pass
            if isinstance(parsed, dict) and parsed:
                meta.append(ContentMeta("Keys", str(len(parsed))))
            return _build(
                "json",
                content=text,
                base_type=base_type,
                preview=trimmed,
                max_length=max_length,
                meta=meta,
            )

    if allow_text and looks_like_html(trimmed):
        return _build(
            "html",
            content=text,
            base_type=base_type,
            preview=trimmed,
            max_length=max_length,
            meta=[ContentMeta("Tags", str(len(_HTML_TAG_OPEN_PATTERN.findall(trimmed))))],
        )

    if allow_text and looks_like_code(trimmed):
        lines = _LINE_SPLIT_PATTERN.split(trimmed)
        return _build(
            "code",
            content=text,
            base_type=base_type,
            preview=lines[0] or trimmed,
            max_length=max_length,
            meta=[ContentMeta("Lines", str(len(lines)))],
            secondary=truncate(cleanup_preview(trimmed), max_length),
        )

    return _build(
        "text",
        content=text,
        base_type=base_type,
        preview=trimmed,
        max_length=max_length,
        meta=[],
        label=BASE_TYPE_LABELS[known_base] if known_base else None,
        icon=BASE_TYPE_ICONS[known_base] if known_base else None,
    )


__all__ = [
    "BASE_TYPE_ICONS",
    "BASE_TYPE_LABELS",
    "EMPTY_PREVIEW",
    "TYPE_ICONS",
    "TYPE_LABELS",
    "VALID_URL_SCHEMES",
    "classify_content",
    "cleanup_preview",
    "format_bytes",
    "is_color_literal",
    "is_phone_number",
    "looks_like_code",
    "looks_like_html",
    "normalize_hex_color",
    "parse_data_url",
    "parse_json_document",
    "parse_url",
    "recover_file_list",
    "truncate",
]

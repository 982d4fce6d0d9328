import base64
import re
import unicodedata
from urllib.parse import unquote, urljoin, urlsplit

from pathvalidate import sanitize_filename as lib_sanitize

from src.migration.domain.errors import ValidationError
from src.migration.domain.models import SourceRef

ROOT_WRAPPER_ID = "__root"
STRUCTURED_HEADING_PREFIX = "id-"
DEFAULT_BINARY_TYPE = "application/octet-stream"

_PAGE_ID_IN_PATH = re.compile(r"/pages/(\d+)(?:/|$)")
_SPACE_KEY_IN_PATH = re.compile(r"/spaces/([^/]+)/")
_NON_LOCAL_SCHEMES = re.compile(r"^(data:|mailto:|tel:|#)", re.I)
_URL_TEXT = re.compile(r"^https?://", re.I)
_TRAILING_HASH_PUNCTUATION = re.compile(r"[.)\]]+$")
_NOT_LETTER_OR_DIGIT = re.compile(r"[\W_]+")
_WHITESPACE = re.compile(r"\s+")
_DEFAULT_PORTS = {"http": 80, "https": 443}
_EXTENSION_TYPES = (
    (".png", "image/png"),
    (".jpg", "image/jpeg"),
    (".jpeg", "image/jpeg"),
    (".gif", "image/gif"),
    (".webp", "image/webp"),
    (".svg", "image/svg+xml"),
    (".avif", "image/avif"),
)


def require_non_empty(value: object, message: str) -> str:
    if value is None or str(value).strip() == "":
        raise ValidationError(message)
    return str(value)


def parse_source_input(text: str) -> SourceRef:
    trimmed = str(text or "").strip()
    if trimmed.isdigit():
        return SourceRef(document_id=trimmed)

    parts = urlsplit(trimmed)
    if not parts.scheme or not parts.netloc:
        raise ValidationError(f'Neither a URL nor a page id: "{text}"')
    match = _PAGE_ID_IN_PATH.search(parts.path)
    if not match:
        raise ValidationError(f"Could not extract a page id from URL: {trimmed}")
    return SourceRef(document_id=match.group(1), page_url=trimmed)


def derive_confluence_base(page_url: str) -> str:
    parts = urlsplit(page_url)
    origin = f"{parts.scheme}://{parts.netloc}"
    # Confluence Cloud lives under /wiki
    if parts.path.startswith("/wiki"):
        return f"{origin}/wiki"
    return origin


def extract_space_key(page_url: str | None) -> str:
    if not page_url:
        return ""
    match = _SPACE_KEY_IN_PATH.search(urlsplit(page_url).path)
    return unquote(match.group(1)) if match else ""


def basic_auth_header(user: str, token: str) -> str:
    raw = f"{user}:{token}".encode("utf-8")
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


def token_auth_header(token_id: str, token_secret: str) -> str:
    return f"Token {token_id}:{token_secret}"


def sanitize_filename(title: str, max_len: int = 140) -> str:
    text = unicodedata.normalize("NFKC", str(title or "")).strip()
    safe_name = lib_sanitize(text, replacement_text="_")
    safe_name = _WHITESPACE.sub(" ", safe_name).strip()
    safe_name = safe_name.rstrip(". ")
    if len(safe_name) > max_len:
        safe_name = safe_name[:max_len].strip()
    if not safe_name:
        return "untitled"
    return safe_name


def make_filename(title: str, document_id: str) -> str:
    return f"{sanitize_filename(title)}__{document_id}.fragment.html"


def url_origin(url: str) -> str:
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return ""
    if not parts.scheme or not parts.hostname:
        return ""
    scheme = parts.scheme.lower()
    origin = f"{scheme}://{parts.hostname.lower()}"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        origin = f"{origin}:{port}"
    return origin


def absolutize(url: str | None, base: str) -> str | None:
    if not url:
        return url
    value = str(url).strip()
    if not value or _NON_LOCAL_SCHEMES.match(value):
        return value
    try:
        return urljoin(base, value)
    except ValueError:
        return value


def extract_document_id_from_href(href: str | None, base: str) -> str | None:
    raw = str(href or "").strip()
    if not raw or _NON_LOCAL_SCHEMES.match(raw):
        return None
    absolute = absolutize(raw, base) or ""
    if not url_origin(absolute) or url_origin(absolute) != url_origin(base):
        return None
    match = _PAGE_ID_IN_PATH.search(urlsplit(absolute).path)
    return match.group(1) if match else None


def looks_like_url_text(text: str | None) -> bool:
    value = str(text or "").strip()
    if not value:
        return True
    return bool(_URL_TEXT.match(value))


def normalize_hash(value: str | None) -> str:
    token = str(value or "").strip()
    if token.startswith("#"):
        token = token[1:]
    if not token:
        return ""
    try:
        token = unquote(token, errors="strict")
    except UnicodeDecodeError:
        pass
    # autolinks often swallow trailing punctuation
    return _TRAILING_HASH_PUNCTUATION.sub("", token)


def normalize_heading_text(text: str | None, treat_hyphen_as_space: bool = False) -> str:
    value = str(text or "").strip().lower()
    if not value:
        return ""
    if treat_hyphen_as_space:
        value = value.replace("-", " ")
    value = _NOT_LETTER_OR_DIGIT.sub(" ", value)
    return _WHITESPACE.sub(" ", value).strip()


def heading_id_candidate(heading_text: str) -> str:
    return STRUCTURED_HEADING_PREFIX + _WHITESPACE.sub("", heading_text.strip())


def guess_content_type(url: str) -> str:
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return ""
    for extension, content_type in _EXTENSION_TYPES:
        if path.endswith(extension):
            return content_type
    return ""


def resolve_content_type(header_value: str | None, url: str) -> str:
    primary = str(header_value or "").split(";")[0].strip()
    return primary or guess_content_type(url) or DEFAULT_BINARY_TYPE


def build_data_uri(content_type: str, data: bytes) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"

import re

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from services.exceptions import ValidationError

MAX_URL_LENGTH = 2048
SHORT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,20}$")

# Custom codes that would shadow service routes mounted at the root
RESERVED_CODES = frozenset({"api", "docs", "redoc", "health", "static", "dashboard", "favicon"})

_http_url = TypeAdapter(HttpUrl)


def _url_error(original_url) -> str | None:
    if not isinstance(original_url, str) or not original_url:
        return "Original URL is required"
    if len(original_url) > MAX_URL_LENGTH:
        return f"URL too long (max {MAX_URL_LENGTH} characters)"
    if any(ch.isspace() for ch in original_url):
        return "Invalid URL format"
    try:
        parsed = _http_url.validate_python(original_url)
    except PydanticValidationError:
        return "Invalid URL format"
    if parsed.scheme not in ("http", "https") or not parsed.host:
        return "Invalid URL format"
    return None


def _code_error(custom_code: str) -> str | None:
    if not 3 <= len(custom_code) <= 20:
        return "Custom code must be between 3-20 characters"
    if not SHORT_CODE_PATTERN.fullmatch(custom_code):
        return "Custom code can only contain letters, numbers, hyphens, and underscores"
    if custom_code.lower() in RESERVED_CODES:
        return "Custom code is reserved"
    return None


def validate_create_request(original_url, custom_code: str | None = None) -> tuple[str, str | None]:
    """
    Check a create request and return the cleaned (original_url, custom_code).

    Every failing field is reported at once. An empty custom code counts as absent.
    """
    cleaned_url = original_url.strip() if isinstance(original_url, str) else original_url
    cleaned_code = custom_code.strip() if custom_code else None
    cleaned_code = cleaned_code or None

    errors = []
    url_error = _url_error(cleaned_url)
    if url_error:
        errors.append({"field": "original_url", "message": url_error})
    if cleaned_code is not None:
        code_error = _code_error(cleaned_code)
        if code_error:
            errors.append({"field": "custom_code", "message": code_error})
    if errors:
        raise ValidationError(errors)
    return cleaned_url, cleaned_code

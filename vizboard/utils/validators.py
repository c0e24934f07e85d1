# vizboard/utils/validators.py
import json
import re
from typing import Any, List, Optional, Tuple
from pathlib import Path

from vizboard.utils.exceptions import ValidationError

NAME_MAX_LENGTH = 100
NAME_PATTERN = re.compile(r"^[A-Za-z0-9 _-]+$")
SETTING_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")


def validate_email(email: str) -> bool:
    """Validate email format"""
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    return bool(re.match(pattern, email))


def validate_password(password: str, min_length: int = 6) -> Tuple[bool, Optional[str]]:
    """
    Validate password length

    Returns:
        (is_valid, error_message)
    """
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters long"

    return True, None


def validate_file_type(
    filename: str,
    content_type: Optional[str],
    allowed_extensions: List[str],
    allowed_mime_types: List[str],
) -> bool:
    """Accept a file when either its extension or its MIME type is allowed"""
    file_ext = Path(filename or "").suffix.lower()
    return file_ext in allowed_extensions or (content_type or "") in allowed_mime_types


def validate_file_size(file_size: int, max_size_mb: int) -> bool:
    """Validate file size"""
    max_size_bytes = max_size_mb * 1024 * 1024
    return file_size <= max_size_bytes


def validate_resource_name(value: Any, field: str, label: str) -> str:
    """
    Check a dataset or dashboard name and return it trimmed.

    Names are required, at most 100 characters, and limited to letters,
    digits, spaces, underscores and hyphens.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Missing required fields: {field}", field)

    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a non-empty string", field)

    name = value.strip()
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(
            f"{label} cannot exceed {NAME_MAX_LENGTH} characters", field
        )

    if not NAME_PATTERN.match(name):
        raise ValidationError(
            f"{label} may only contain letters, numbers, spaces, underscores and hyphens",
            field,
        )

    return name


def validate_setting_key(key: str) -> str:
    """Validate a settings key"""
    if not key or not SETTING_KEY_PATTERN.match(key):
        raise ValidationError(
            "Setting key must be 1-100 characters of letters, numbers, '.', '_' or '-'",
            "key",
        )
    return key


def validate_json_text(text: str, field: str, message: str) -> Any:
    """Parse serialized JSON, turning syntax errors into a ValidationError"""
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        raise ValidationError(message, field)


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage"""
    # Remove path components
    filename = Path(filename).name

    # Replace special characters
    filename = re.sub(r"[^\w\s.-]", "_", filename)

    # Limit length
    max_length = 255
    if len(filename) > max_length:
        if "." in filename:
            name, ext = filename.rsplit(".", 1)
            filename = name[: max_length - len(ext) - 1] + "." + ext
        else:
            filename = filename[:max_length]

    return filename or "upload.csv"

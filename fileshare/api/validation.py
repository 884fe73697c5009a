"""
Request field validation shared by the v1 endpoints.
"""

from typing import Collection, Optional

from email_validator import EmailNotValidError, validate_email

from fileshare.domain.errors import ApplicationError, ErrorCategory


def clean_email(value: Optional[str], field: str) -> Optional[str]:
    """
    Normalize an optional email address.

    Args:
        value: Raw field value, None or blank when omitted
        field: Field name used in the error message

    Returns:
        The normalized address, or None when the field was left empty

    Raises:
        ApplicationError: INVALID_EMAIL if the address is malformed
    """
    if value is None or not str(value).strip():
        return None

    try:
        result = validate_email(str(value).strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ApplicationError(ErrorCategory.INVALID_EMAIL, f"{field}: {e}")
    return result.normalized


def check_mime_type(mime_type: str, allowed: Collection[str]) -> str:
    """
    Raises:
        ApplicationError: FILE_TYPE_NOT_ALLOWED if mime_type is not in allowed
    """
    normalized = (mime_type or "").split(";")[0].strip().lower()
    if normalized not in allowed:
        raise ApplicationError(
            ErrorCategory.FILE_TYPE_NOT_ALLOWED, f"File type {normalized or 'unknown'} is not allowed"
        )
    return normalized

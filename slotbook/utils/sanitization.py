import html
from typing import Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape client-supplied text before it is embedded in a Telegram message
    sent with parse_mode=HTML. None passes through.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value), quote=True)


def clean_text(value: Optional[str], max_length: int = 255) -> str:
    """
    Strip and length-check free text supplied by clients (names, notes).

    Args:
        value: Input string
        max_length: Maximum allowed length

    Returns:
        Stripped string ("" for missing input)

    Raises:
        ValueError: If input is too long
    """
    if not value:
        return ""

    value = str(value).strip()

    if len(value) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    return value

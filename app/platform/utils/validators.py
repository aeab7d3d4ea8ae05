import re
from typing import Iterable

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

# Common mail providers accepted at registration
ALLOWED_EMAIL_DOMAINS = frozenset(
    {
        # Domestic providers
        "qq.com",
        "163.com",
        "126.com",
        "sina.com",
        "sina.cn",
        "sohu.com",
        "yeah.net",
        "139.com",
        "wo.cn",
        "189.cn",
        "aliyun.com",
        "foxmail.com",
        # International providers
        "gmail.com",
        "outlook.com",
        "hotmail.com",
        "yahoo.com",
        "icloud.com",
        "live.com",
        "msn.com",
        "aol.com",
        "protonmail.com",
        "zoho.com",
    }
)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_REGEX.match(email or ""))


def is_allowed_email_domain(email: str) -> bool:
    parts = (email or "").split("@")
    if len(parts) != 2:
        return False
    return parts[1].lower() in ALLOWED_EMAIL_DOMAINS


def is_valid_password(password: str) -> bool:
    """At least 8 characters with at least one ASCII letter and one digit."""
    if len(password or "") < PASSWORD_MIN_LENGTH:
        return False
    has_letter = any(("a" <= c <= "z") or ("A" <= c <= "Z") for c in password)
    has_digit = any("0" <= c <= "9" for c in password)
    return has_letter and has_digit


def is_valid_username(username: str) -> bool:
    return USERNAME_MIN_LENGTH <= len(username or "") <= USERNAME_MAX_LENGTH


def is_valid_file_type(filename: str, allowed_types: Iterable[str]) -> bool:
    parts = (filename or "").split(".")
    if len(parts) < 2:
        return False
    ext = parts[-1].lower()
    return ext in {t.lower() for t in allowed_types}


def mask_email(email: str) -> str:
    """Mask an email for display, e.g. ``t***@example.com``."""
    parts = email.split("@")
    if len(parts) != 2:
        return email

    local, domain = parts
    if not local:
        return email

    return f"{local[0]}***@{domain}"

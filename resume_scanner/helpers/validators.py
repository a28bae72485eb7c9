import re
from typing import Optional

EMAIL_RE = re.compile(r"[\w.\-]+@[\w.\-]+\.\w{2,}", re.IGNORECASE)
PHONE_RE = re.compile(r"(\+?\d{1,3}[\s\-.])?[\d\-()\s]{6,}")


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email and email.strip()) and EMAIL_RE.fullmatch(email) is not None


def is_valid_phone(phone: Optional[str]) -> bool:
    return bool(phone and phone.strip()) and PHONE_RE.fullmatch(phone) is not None

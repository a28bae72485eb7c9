"""
Rule-based field extraction from plain resume text.

Every extractor is a pure function of the text and returns None (or an empty
list) when it finds nothing. The first match always wins, so the order of the
patterns below matters.
"""
import re
from typing import Iterable, List, Optional, Sequence

from resume_scanner.helpers.validators import is_valid_email, is_valid_phone
from resume_scanner.models.models import HeuristicFields

SKILL_KEYWORDS = (
    "c#", ".net", "asp.net", "sql", "javascript", "react", "angular",
    "python", "java", "aws", "azure", "docker", "kubernetes", "html", "css",
    "node", "mongodb", "mysql", "postgres", "git", "rest",
)

ROLE_KEYWORDS = (
    "developer", "engineer", "lead", "manager", "architect",
    "principal", "consultant", "analyst", "director",
)

EMAIL_RE = re.compile(r"[a-zA-Z0-9.\-_]+@[a-zA-Z0-9.\-_]+\.[a-zA-Z]{2,}", re.IGNORECASE)
PHONE_RE = re.compile(r"(\+?\d{1,3}[\s\-.])?(\(?\d{2,4}\)?[\s\-.])?\d{6,10}")
YEARS_RE = re.compile(r"(\d{1,2})\s+years?", re.IGNORECASE)
CALENDAR_YEAR_RE = re.compile(r"(?:19|20)\d{2}")
LOCATION_LABEL_RE = re.compile(r"(?:Location|City|Address|Lives in)[:\s]+\s*(.+)", re.IGNORECASE)
DESIGNATION_LABEL_RE = re.compile(
    r"(?:Designation|Title|Role|Current Title|Current Role)[:\s]+\s*(.+)", re.IGNORECASE
)
SENIORITY_ROLE_RE = re.compile(
    r"(Senior|Sr\.?|Junior|Jr\.?)\s+([A-Za-z/\s]{2,40}(Developer|Engineer|Manager|Lead|Architect|Analyst))",
    re.IGNORECASE,
)
CONTACT_EMAIL_RE = re.compile(r"\S+@\S+")
LONG_NUMBER_RE = re.compile(r"\d{6,}")


def _lines(text: str) -> List[str]:
    return [line.strip() for line in re.split(r"[\r\n]+", text) if line]


def _labelled_value(match: "re.Match") -> Optional[str]:
    # the capture never spans lines
    value = match.group(1).strip().rstrip(",.")
    return value or None


def _is_contact_line(line: str) -> bool:
    return bool(CONTACT_EMAIL_RE.search(line) or LONG_NUMBER_RE.search(line))


def extract_email(text: Optional[str]) -> Optional[str]:
    m = EMAIL_RE.search(text or "")
    return m.group(0) if m else None


def extract_phone(text: Optional[str]) -> Optional[str]:
    m = PHONE_RE.search(text or "")
    return m.group(0).strip() if m else None


def extract_skills(text: Optional[str], skill_keywords: Iterable[str] = SKILL_KEYWORDS) -> List[str]:
    lowered = (text or "").lower()
    found: List[str] = []
    for skill in skill_keywords:
        key = skill.lower()
        if key in lowered and key not in found:
            found.append(key)
    return found


def extract_name(text: Optional[str]) -> Optional[str]:
    if not text or not text.strip():
        return None
    candidates = [line for line in _lines(text) if len(line) > 2][:12]
    for line in candidates:
        tokens = line.split()
        caps = sum(1 for t in tokens if t[0].isupper())
        if caps >= min(2, len(tokens)):
            return re.sub(r"[^\w\s\-]", "", line).strip()
    return None


def extract_years_experience(text: Optional[str]) -> Optional[int]:
    if not text or not text.strip():
        return None
    m = YEARS_RE.search(text)
    if m:
        return int(m.group(1))
    years = [int(y) for y in CALENDAR_YEAR_RE.findall(text)]
    if len(years) >= 2:
        spread = max(years) - min(years)
        if 0 < spread < 50:
            return spread
    return None


def extract_location(text: Optional[str]) -> Optional[str]:
    if not text or not text.strip():
        return None

    m = LOCATION_LABEL_RE.search(text)
    if m:
        return _labelled_value(m)

    short_lines = [line for line in _lines(text) if 1 < len(line) < 60][:8]
    for line in short_lines:
        if _is_contact_line(line):
            continue
        # "Pune, Maharashtra" / "Bengaluru, India"
        if "," in line and re.search(r"[A-Za-z]", line):
            return line
    return None


def extract_designation(text: Optional[str]) -> Optional[str]:
    if not text or not text.strip():
        return None

    m = DESIGNATION_LABEL_RE.search(text)
    if m:
        return _labelled_value(m)

    top_lines = [line for line in _lines(text) if 1 < len(line) < 80][:12]
    for line in top_lines:
        if _is_contact_line(line):
            continue
        lower = line.lower()
        if any(k in lower for k in ROLE_KEYWORDS):
            return re.sub(r"[^\w\s\-/.]", "", line).strip()

    m = SENIORITY_ROLE_RE.search(text)
    if m:
        return m.group(0).strip()
    return None


def extract_fields(text: Optional[str], skill_keywords: Sequence[str] = SKILL_KEYWORDS) -> HeuristicFields:
    """Run every extractor; email and phone are dropped unless they validate."""
    text = text or ""
    email = extract_email(text)
    phone = extract_phone(text)
    return HeuristicFields(
        name=extract_name(text),
        email=email if is_valid_email(email) else None,
        phone=phone if is_valid_phone(phone) else None,
        skills=extract_skills(text, skill_keywords),
        total_years_experience=extract_years_experience(text),
        location=extract_location(text),
        designation=extract_designation(text),
    )

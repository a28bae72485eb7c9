import json
from typing import Optional


def extract_first_json_object(text: Optional[str]) -> Optional[str]:
    """
    Find the first balanced ``{...}`` block in ``text`` that decodes to a JSON object.

    Scanning starts at the first ``{``. Every time the brace depth drops back to
    zero the substring seen so far is tried with ``json.loads``; the first one
    that yields a dict is returned verbatim. Returns None when nothing parses.
    """
    if not text or not text.strip():
        return None
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                candidate = text[start:i + 1]
                try:
                    if isinstance(json.loads(candidate), dict):
                        return candidate
                except (ValueError, RecursionError):
                    # keep scanning; a later closing brace may complete the object
                    pass
    return None

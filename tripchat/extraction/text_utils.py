"""
Shared helpers for turning free text into place names, times and keys
"""

import re
from typing import Iterable, List, Optional

KNOWN_CITIES = {
    "tokyo", "kyoto", "osaka", "paris", "london", "rome", "barcelona",
    "madrid", "lisbon", "amsterdam", "berlin", "prague", "vienna",
    "istanbul", "athens", "dubai", "singapore", "bangkok", "bali",
    "seoul", "hong kong", "sydney", "melbourne", "new york", "los angeles",
    "san francisco", "chicago", "miami", "toronto", "mexico city",
    "mumbai", "delhi", "new delhi", "goa", "bangalore", "jaipur",
    "venice", "florence", "cairo", "marrakech", "cape town",
}

# Words that end a place-name candidate
STOP_WORDS = {
    "for", "from", "with", "on", "in", "at", "to", "and", "or", "but",
    "next", "this", "that", "during", "around", "by", "under", "within",
    "days", "day", "nights", "night", "weeks", "week", "month", "months",
    "please", "soon", "tomorrow", "today", "trip", "budget", "is", "are",
    "was", "will", "would", "which", "where", "when", "i", "we", "my",
    "our", "it", "its", "as", "so", "the", "instead", "too", "also",
    "again", "now", "then", "sometime", "someday", "asap",
}

# Words dropped from the front of a candidate ("a trip to Rome" -> "Rome")
LEADING_FILLER = {
    "a", "an", "the", "trip", "visit", "visiting", "go", "going", "travel",
    "traveling", "travelling", "fly", "flying", "head", "heading", "to",
    "plan", "planning", "vacation", "holiday", "tour", "see", "explore",
    "get", "getting", "my", "our", "some", "beautiful", "lovely",
}

MAX_PLACE_WORDS = 4


def clean_place(raw: str) -> Optional[str]:
    """
    Trim a regex capture down to the place name it most likely holds.

    Leading filler and stop words are dropped, and the candidate is cut at
    the next stop word, digit or punctuation mark. Returns None when nothing usable
    remains.
    """

    words = re.split(r"\s+", raw.strip())

    while words and words[0].lower() in LEADING_FILLER:
        words.pop(0)

    kept: List[str] = []
    for word in words:
        bare = word.strip(".,!?;:'\"()*_")
        if not bare or not re.fullmatch(r"[A-Za-z][A-Za-z'\-]*", bare):
            break
        if bare.lower() in STOP_WORDS:
            if kept:
                break
            continue
        kept.append(bare)
        if bare != word:
            break
        if len(kept) == MAX_PLACE_WORDS:
            break

    if not kept:
        return None

    return " ".join(kept)


def is_known_city(name: str) -> bool:
    return name.lower().strip() in KNOWN_CITIES


def looks_like_place(name: str) -> bool:
    """Capitalised in the source text, or a city we recognise"""
    return name[0].isupper() or is_known_city(name)


def display_place(name: str) -> str:
    """Title-case names the user typed in lowercase"""
    if name.islower():
        return name.title()
    return name


def normalize_key(text: str) -> str:
    return text.strip().lower()


def dedupe(values: Iterable[str]) -> List[str]:
    """Case/whitespace-insensitive dedupe that keeps first-seen order"""

    seen = set()
    result = []
    for value in values:
        key = normalize_key(value)
        if key and key not in seen:
            seen.add(key)
            result.append(value.strip())
    return result


def format_clock(minutes_since_midnight: int) -> str:
    """720 -> '12:00 PM'"""

    minutes_since_midnight %= 24 * 60
    hours, minutes = divmod(minutes_since_midnight, 60)
    suffix = "AM" if hours < 12 else "PM"
    hour12 = hours % 12 or 12
    return f"{hour12}:{minutes:02d} {suffix}"


def strip_markdown(text: str) -> str:
    """Remove emphasis markers and heading hashes"""
    text = re.sub(r"[*_`#]+", "", text)
    return text.strip()


def truncate(text: str, limit: int = 50) -> str:
    """Shorten to fewer than `limit` characters"""
    if len(text) < limit:
        return text
    return text[: limit - 4].rstrip() + "..."

"""
StructuredBlockExtractor - Local food and attraction cards from a reply

The model is asked to append blocks such as

    LOCAL_FOOD: [{"name": "Ramen", "price": "$10", ...}]
    LOCAL_ATTRACTIONS: [{"name": "Senso-ji", "hours": "2 hours", ...}]

Models rarely emit clean JSON, so each kind of card goes through four tiers:
tolerant JSON, field-by-field regex over the block, labelled prose sections,
and finally sentence patterns anywhere in the text.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote_plus

from tripchat.extraction.strategies import ExtractionStrategy, run_strategies
from tripchat.extraction.text_utils import normalize_key, strip_markdown
from tripchat.models.schemas import AttractionItem, FoodItem

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://source.unsplash.com/featured/"

FOOD_LABELS = ("LOCAL_FOOD", "LOCAL FOOD", "LOCAL_FOODS", "LOCAL_CUISINE")
ATTRACTION_LABELS = ("LOCAL_ATTRACTIONS", "LOCAL ATTRACTIONS", "LOCAL_ATTRACTION", "ATTRACTIONS")

# Stands in for newlines inside string values while the block is repaired
NEWLINE_SENTINEL = "␤"

FIELD_PATTERN = re.compile(
    r"[\"']?([A-Za-z_]+)[\"']?\s*:\s*(?:\"((?:[^\"\\]|\\.)*)\"|'((?:[^'\\]|\\.)*)'|(-?\d+(?:\.\d+)?))"
)

PRICE_PATTERN = re.compile(r"[$€£¥₹]\s?\d[\d,.]*(?:\s*[-–]\s*[$€£¥₹]?\s?\d[\d,.]*)?")
DURATION_PATTERN = re.compile(r"\b\d+(?:\.\d+)?(?:\s*[-–]\s*\d+(?:\.\d+)?)?\s*(?:hours?|hrs?|minutes?|mins?)\b", re.IGNORECASE)

LIST_ITEM = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.+)$")

FOOD_SECTION = re.compile(
    r"^[ \t#*_]*(?:local\s+cuisine|local\s+food|local\s+dishes|must[- ]try\s+(?:foods?|dishes)"
    r"|foods?\s+to\s+try|what\s+to\s+eat)\b[^\n]*$",
    re.IGNORECASE | re.MULTILINE
)

ATTRACTION_SECTION = re.compile(
    r"^[ \t#*_]*(?:local\s+attractions|top\s+attractions|must[- ]see\s+(?:sights|places|attractions)"
    r"|things\s+to\s+do|places\s+to\s+visit|sights\s+to\s+see)\b[^\n]*$",
    re.IGNORECASE | re.MULTILINE
)

NAME = r"([A-Z][A-Za-z'\-]*(?:[ \t]+[A-Z][A-Za-z'\-]*){0,3})"
LOOSE_NAME = r"([A-Za-z][A-Za-z'\-]*(?:[ \t]+[A-Z][A-Za-z'\-]*){0,2})"

FOOD_SENTENCES = [
    re.compile(r"(?i:popular\s+(?:food|dish|snack|street\s+food)\s+called)\s+" + LOOSE_NAME),
    re.compile(r"(?i:dish|specialty|speciality)\s+(?i:known\s+as)\s+" + LOOSE_NAME),
    re.compile(r"\b(?i:try|taste|sample)\s+(?:(?i:the)\s+)?(?:(?i:famous|local|delicious)\s+)?" + NAME),
]

ATTRACTION_SENTENCES = [
    re.compile(r"\b(?i:visit|explore|see|tour|check\s+out)\s+(?i:the)\s+" + NAME),
]


# ============================================================================
# TOLERANT JSON
# ============================================================================

def _repair_json(raw: str) -> str:
    """
    Rewrite near-JSON into JSON.

    Single-quoted strings become double-quoted, bareword keys are quoted,
    trailing commas are dropped, and raw newlines inside strings become the
    sentinel character.
    """

    out: List[str] = []
    i, n = 0, len(raw)
    quote: Optional[str] = None

    while i < n:
        ch = raw[i]

        if quote:
            if ch == "\\" and i + 1 < n:
                nxt = raw[i + 1]
                out.append(nxt if (quote == "'" and nxt == "'") else ch + nxt)
                i += 2
                continue
            if ch == quote:
                out.append('"')
                quote = None
            elif ch == '"':
                out.append('\\"')
            elif ch in "\r\n":
                out.append(NEWLINE_SENTINEL)
            elif ch == "\t":
                out.append(" ")
            else:
                out.append(ch)
            i += 1
            continue

        if ch in "\"'":
            quote = ch
            out.append('"')
            i += 1
            continue

        if ch == ",":
            j = i + 1
            while j < n and raw[j].isspace():
                j += 1
            if j < n and raw[j] in "]}":
                i += 1
                continue

        if ch.isalpha() or ch == "_":
            j = i
            while j < n and (raw[j].isalnum() or raw[j] == "_"):
                j += 1
            word = raw[i:j]
            k = j
            while k < n and raw[k] in " \t":
                k += 1
            if k < n and raw[k] == ":" and word not in ("true", "false", "null"):
                out.append(f'"{word}"')
            else:
                out.append(word)
            i = j
            continue

        out.append(" " if ch in "\r\n" else ch)
        i += 1

    return "".join(out)


def _restore_newlines(value: Any) -> Any:
    if isinstance(value, str):
        return value.replace(NEWLINE_SENTINEL, " ").strip()
    if isinstance(value, list):
        return [_restore_newlines(v) for v in value]
    if isinstance(value, dict):
        return {k: _restore_newlines(v) for k, v in value.items()}
    return value


def parse_tolerant_json(raw: str) -> Optional[Any]:
    """Parsed value, or None when the text cannot be repaired into JSON"""

    if not raw or not raw.strip():
        return None

    try:
        return _restore_newlines(json.loads(_repair_json(raw.strip())))
    except json.JSONDecodeError as e:
        logger.debug(f"Block is not repairable JSON: {e}")
        return None


# ============================================================================
# BLOCK LOCATION
# ============================================================================

def _matching_bracket(text: str, start: int) -> int:
    """Index just past the bracket closing text[start]; len(text) if unbalanced"""

    depth = 0
    quote = None
    i = start
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'":
            # Apostrophes inside bareword text are not string delimiters
            if ch == '"' or not text[i - 1].isalpha():
                quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return len(text)


def find_block(text: str, labels: Sequence[str]) -> Optional[Tuple[int, int, str]]:
    """(label start, block end, bracketed block) for the first label present"""

    for label in labels:
        pattern = re.compile(
            r"\b" + re.escape(label) + r"\s*:?\s*(?:```(?:json)?\s*)?(\[)",
            re.IGNORECASE
        )
        match = pattern.search(text)
        if match:
            bracket = match.start(1)
            end = _matching_bracket(text, bracket)
            return match.start(), end, text[bracket:end]
    return None


def strip_structured_blocks(text: str) -> str:
    """Reply text without the machine-readable blocks"""

    for labels in (FOOD_LABELS, ATTRACTION_LABELS):
        block = find_block(text, labels)
        while block:
            start, end, _ = block
            # Fence opened between label and bracket
            if "```" in text[start:end]:
                tail = re.match(r"\s*```", text[end:])
                if tail:
                    end += tail.end()
            text = text[:start] + text[end:]
            block = find_block(text, labels)

    text = re.sub(r"```(?:json)?\s*```", "", text)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


# ============================================================================
# RECORD STRATEGIES
# ============================================================================

def _clean_records(records: Any) -> List[Dict[str, str]]:
    """Keep dicts with a usable name, keys lowercased, values stringified"""

    if isinstance(records, dict):
        records = [records]
    if not isinstance(records, list):
        return []

    cleaned = []
    for record in records:
        if not isinstance(record, dict):
            continue
        normalized = {
            str(k).lower(): str(v).strip()
            for k, v in record.items()
            if v is not None and not isinstance(v, (list, dict))
        }
        if normalized.get("name"):
            cleaned.append(normalized)
    return cleaned


class JsonBlockStrategy(ExtractionStrategy):
    name = "json_block"

    def __init__(self, labels: Sequence[str]):
        self.labels = labels

    def try_extract(self, text: str) -> List[Dict[str, str]]:
        block = find_block(text, self.labels)
        if not block:
            return []
        return _clean_records(parse_tolerant_json(block[2]))


class FieldRegexStrategy(ExtractionStrategy):
    """Pull key/value pairs out of each {...} chunk of a broken block"""
    name = "field_regex"

    def __init__(self, labels: Sequence[str]):
        self.labels = labels

    def try_extract(self, text: str) -> List[Dict[str, str]]:
        block = find_block(text, self.labels)
        if not block:
            return []

        records = []
        for chunk in re.finditer(r"\{[^{}]*\}?", block[2]):
            fields = {}
            for match in FIELD_PATTERN.finditer(chunk.group(0)):
                key = match.group(1).lower()
                value = next(g for g in match.groups()[1:] if g is not None)
                fields.setdefault(key, value.replace("\\n", " ").strip())
            records.append(fields)
        return _clean_records(records)


class ProseSectionStrategy(ExtractionStrategy):
    """List items under a heading such as 'Local Cuisine'"""
    name = "prose_section"

    def __init__(self, heading: re.Pattern):
        self.heading = heading

    def try_extract(self, text: str) -> List[Dict[str, str]]:
        records = []
        for match in self.heading.finditer(text):
            started = False
            for line in text[match.end():].splitlines()[1:]:
                item = LIST_ITEM.match(line)
                if item:
                    started = True
                    record = self._parse_item(item.group(1))
                    if record:
                        records.append(record)
                elif not line.strip() and not started:
                    continue
                else:
                    break
        return records

    @staticmethod
    def _parse_item(item: str) -> Optional[Dict[str, str]]:
        parts = re.split(r"\s+[-–—]\s+|:\s+", item, maxsplit=1)
        name = strip_markdown(parts[0]).strip(" :")
        if not name or len(name) > 60:
            return None

        description = strip_markdown(parts[1]) if len(parts) > 1 else ""
        record = {"name": name, "description": description}

        price = PRICE_PATTERN.search(description)
        if price:
            record["price"] = price.group(0)
        duration = DURATION_PATTERN.search(description)
        if duration:
            record["duration"] = duration.group(0)
        return record


class SentencePatternStrategy(ExtractionStrategy):
    """Names mentioned in running text ('a popular food called Takoyaki')"""
    name = "sentence_patterns"

    def __init__(self, patterns: Sequence[re.Pattern]):
        self.patterns = patterns

    def try_extract(self, text: str) -> List[Dict[str, str]]:
        records = []
        for pattern in self.patterns:
            for match in pattern.finditer(text):
                name = match.group(1).strip()
                if len(name) > 2:
                    records.append({"name": name})
        return records


# ============================================================================
# EXTRACTOR
# ============================================================================

def image_url_for(name: str, keyword: Optional[str] = None) -> str:
    return f"{IMAGE_BASE_URL}?{quote_plus((keyword or name).strip().lower())}"


def _dedupe_records(records: List[Dict[str, str]]) -> List[Dict[str, str]]:
    seen = set()
    unique = []
    for record in records:
        key = normalize_key(record["name"])
        if key not in seen:
            seen.add(key)
            unique.append(record)
    return unique


class StructuredBlockExtractor:
    """Local food and attraction cards"""

    def __init__(self):
        self.food_strategies = [
            JsonBlockStrategy(FOOD_LABELS),
            FieldRegexStrategy(FOOD_LABELS),
            ProseSectionStrategy(FOOD_SECTION),
            SentencePatternStrategy(FOOD_SENTENCES),
        ]
        self.attraction_strategies = [
            JsonBlockStrategy(ATTRACTION_LABELS),
            FieldRegexStrategy(ATTRACTION_LABELS),
            ProseSectionStrategy(ATTRACTION_SECTION),
            SentencePatternStrategy(ATTRACTION_SENTENCES),
        ]

    def extract_food(self, text: str, destination: Optional[str] = None) -> List[FoodItem]:
        records = _dedupe_records(run_strategies(self.food_strategies, text) or [])
        return [
            FoodItem(
                name=r["name"],
                price=r.get("price") or "Varies",
                description=r.get("description", ""),
                location=r.get("location") or destination or "",
                image_url=image_url_for(r["name"], r.get("image_keyword") or r.get("imagekeyword")),
            )
            for r in records
        ]

    def extract_attractions(self, text: str, destination: Optional[str] = None) -> List[AttractionItem]:
        records = _dedupe_records(run_strategies(self.attraction_strategies, text) or [])
        return [
            AttractionItem(
                name=r["name"],
                price=r.get("price") or "Varies",
                description=r.get("description", ""),
                location=r.get("location") or destination or "",
                duration=r.get("hours") or r.get("duration"),
                image_url=image_url_for(r["name"], r.get("image_keyword") or r.get("imagekeyword")),
            )
            for r in records
        ]

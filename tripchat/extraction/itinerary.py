"""
ItineraryExtractor - Rebuilds a day-by-day plan from free text

Replies are segmented on "Day N" headers. Activities inside a day are read
with the first line style that matches: timed lines, time-of-day lines,
bullets, then plain lines. Replies that talk about an itinerary without any
day headers get a default template instead.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from tripchat.extraction.strategies import (
    ExtractionStrategy,
    RegexCaptureStrategy,
    run_over_texts,
    run_strategies,
)
from tripchat.extraction.text_utils import (
    clean_place,
    display_place,
    format_clock,
    looks_like_place,
    strip_markdown,
    truncate,
)
from tripchat.models.schemas import Activity, ItineraryDay, ItineraryDraft

logger = logging.getLogger(__name__)

DEFAULT_DESTINATION = "Your Destination"
DEFAULT_DAY_COUNT = 3
MAX_DAY_COUNT = 30
ITINERARY_CUES = ("itinerary", "day 1")

BULLET = r"(?:[-*•]|\d+[.)])"

DAY_HEADER = re.compile(
    r"^[ \t>#*_\-]*day[ \t]+(\d{1,2})\b[ \t*_]*[:\-–—.)]?[ \t*_]*(.*)$",
    re.IGNORECASE | re.MULTILINE
)

TIMED_LINE = re.compile(
    rf"^\s*{BULLET}?\s*[*_]*\s*"
    r"(\d{1,2}(?::\d{2})?\s*[AaPp]\.?[Mm]\.?|\d{1,2}:\d{2})"
    r"\s*[*_]*\s*[-–—:]\s*[*_]*\s*(.+)$",
    re.MULTILINE
)

PERIOD_LINE = re.compile(
    rf"^\s*{BULLET}?\s*[*_]*\s*(morning|afternoon|evening|night)\b"
    r"\s*[*_]*\s*[:\-–—]\s*[*_]*\s*(.+)$",
    re.IGNORECASE | re.MULTILINE
)

BULLET_LINE = re.compile(rf"^\s*{BULLET}\s+(.+)$", re.MULTILINE)

DAY_COUNT = re.compile(r"\b(\d{1,2})\s*-?\s*days?\b", re.IGNORECASE)

PERIOD_TIMES = {
    "morning": "9:00 AM",
    "afternoon": "2:00 PM",
    "evening": "7:00 PM",
    "night": "9:00 PM",
}

BULLET_TIMES = ["8:00 AM", "10:30 AM", "1:00 PM", "3:30 PM", "6:00 PM", "8:30 PM"]

RAW_LINE_START = 8 * 60
RAW_LINE_STEP = 2 * 60
RAW_LINE_SPAN = 14 * 60
MIN_RAW_LINE_LENGTH = 10

TITLE_BUCKETS: List[Tuple[Tuple[str, ...], str]] = [
    (("temple", "shrine", "palace", "castle", "church", "cathedral"), "Cultural Exploration"),
    (("market", "shop", "mall", "bazaar"), "Shopping & Local Markets"),
    (("museum", "art", "gallery", "exhibit"), "Arts & Museums"),
    (("park", "garden", "nature", "hike", "beach", "mountain"), "Nature & Outdoors"),
    (("food", "restaurant", "cafe", "lunch", "dinner", "street food"), "Food & Culinary Experiences"),
    (("arrive", "arrival", "check in", "check-in"), "Arrival & Orientation"),
    (("depart", "departure", "airport", "check out"), "Farewell Day"),
]

NOT_DESTINATIONS = {"day", "morning", "afternoon", "evening", "night", "i", "you", "your"}

DEFAULT_SLOTS = ["8:00 AM", "10:00 AM", "12:30 PM", "3:00 PM", "6:30 PM", "8:30 PM"]

ARRIVAL_ACTIVITIES = [
    "Arrive in {destination} and check in to your accommodation",
    "Settle in and freshen up",
    "Lunch at a local restaurant near your hotel",
    "Orientation walk around the neighborhood",
    "Welcome dinner featuring local cuisine",
    "Evening stroll and an early night",
]

EXPLORE_ACTIVITIES = [
    "Breakfast at a local cafe",
    "Visit a major landmark in {destination}",
    "Lunch at a popular local spot",
    "Explore museums or markets",
    "Dinner at a recommended restaurant",
    "Evening entertainment or a night walk",
]

FAREWELL_ACTIVITIES = [
    "Breakfast and pack your bags",
    "Last-minute souvenir shopping",
    "Farewell lunch at a favorite spot",
    "Check out of your accommodation",
    "Transfer to the airport or station",
    "Depart {destination}",
]


def normalize_time(raw: str) -> str:
    """'9am' -> '9:00 AM', '14:30' -> '2:30 PM'"""

    text = raw.strip().upper().replace(".", "")
    match = re.match(r"(\d{1,2})(?::(\d{2}))?\s*(AM|PM)?", text)
    if not match:
        return raw.strip()

    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    suffix = match.group(3)

    if suffix:
        hours = hours % 12 + (12 if suffix == "PM" else 0)

    return format_clock(hours * 60 + minutes)


def clean_description(text: str) -> str:
    return strip_markdown(text).strip(" -–—:")


# ============================================================================
# ACTIVITY STRATEGIES
# ============================================================================

class TimedLineStrategy(ExtractionStrategy):
    """'9:00 AM - Visit the temple'"""
    name = "timed_lines"

    def try_extract(self, text: str) -> List[Activity]:
        return [
            Activity(time=normalize_time(m.group(1)), description=clean_description(m.group(2)))
            for m in TIMED_LINE.finditer(text)
            if clean_description(m.group(2))
        ]


class PeriodLineStrategy(ExtractionStrategy):
    """'Morning: Visit the temple'"""
    name = "period_lines"

    def try_extract(self, text: str) -> List[Activity]:
        return [
            Activity(time=PERIOD_TIMES[m.group(1).lower()], description=clean_description(m.group(2)))
            for m in PERIOD_LINE.finditer(text)
            if clean_description(m.group(2))
        ]


class BulletStrategy(ExtractionStrategy):
    """'- Visit the temple', times assigned from a fixed rotation"""
    name = "bullets"

    def try_extract(self, text: str) -> List[Activity]:
        descriptions = [clean_description(m.group(1)) for m in BULLET_LINE.finditer(text)]
        descriptions = [d for d in descriptions if d]
        return [
            Activity(time=BULLET_TIMES[i % len(BULLET_TIMES)], description=d)
            for i, d in enumerate(descriptions)
        ]


class RawLineStrategy(ExtractionStrategy):
    """Any reasonably long line, two hours apart from 8:00 AM"""
    name = "raw_lines"

    def try_extract(self, text: str) -> List[Activity]:
        lines = [clean_description(line) for line in text.splitlines()]
        lines = [line for line in lines if len(line) > MIN_RAW_LINE_LENGTH]
        return [
            Activity(
                time=format_clock(RAW_LINE_START + (i * RAW_LINE_STEP) % RAW_LINE_SPAN),
                description=line,
            )
            for i, line in enumerate(lines)
        ]


ACTIVITY_STRATEGIES = [
    TimedLineStrategy(),
    PeriodLineStrategy(),
    BulletStrategy(),
    RawLineStrategy(),
]


# ============================================================================
# EXTRACTOR
# ============================================================================

class ItineraryExtractor:
    """Free text to ItineraryDraft"""

    def __init__(self):
        self.destination_strategies = [
            RegexCaptureStrategy(
                "destination_phrase",
                re.compile(
                    r"\b(?:trip|visit|travel|itinerary|plan)\s+(?:to|for|in|at)\s+"
                    r"([A-Za-z][A-Za-z'\-]*(?:\s+[A-Za-z][A-Za-z'\-]*){0,3})",
                    re.IGNORECASE
                ),
                cleaner=clean_place,
                accept=self._accept_destination,
            ),
            RegexCaptureStrategy(
                "capitalized_after_preposition",
                re.compile(
                    r"\b(?i:to|in|at|for|visit(?:ing)?)\s+"
                    r"([A-Z][A-Za-z'\-]*(?:\s+[A-Z][A-Za-z'\-]*){0,3})"
                ),
                cleaner=clean_place,
                accept=self._accept_destination,
            ),
        ]
        self.day_count_strategies = [
            RegexCaptureStrategy(
                "n_day",
                DAY_COUNT,
                accept=lambda v: 1 <= int(v) <= MAX_DAY_COUNT,
            ),
        ]

    @staticmethod
    def _accept_destination(name: str) -> bool:
        return looks_like_place(name) and name.split()[0].lower() not in NOT_DESTINATIONS

    @staticmethod
    def mentions_itinerary(model_text: str) -> bool:
        lowered = model_text.lower()
        return any(cue in lowered for cue in ITINERARY_CUES)

    def resolve_destination(self, model_text: str, user_utterance: str) -> str:
        destination = run_over_texts(self.destination_strategies, [user_utterance, model_text])
        return display_place(destination) if destination else DEFAULT_DESTINATION

    def resolve_day_count(self, model_text: str, user_utterance: str) -> int:
        for text in (model_text, user_utterance):
            value = run_strategies(self.day_count_strategies, text)
            if value:
                return int(value)
        return DEFAULT_DAY_COUNT

    def extract(self, model_text: str, user_utterance: str = "") -> Optional[ItineraryDraft]:
        """ItineraryDraft when the reply talks about an itinerary, else None"""

        if not model_text or not self.mentions_itinerary(model_text):
            return None

        destination = self.resolve_destination(model_text, user_utterance)
        days = self.parse_days(model_text, destination)

        if not days:
            day_count = self.resolve_day_count(model_text, user_utterance)
            logger.info(f"🗓️  No day headers, using {day_count}-day template for {destination}")
            days = self.default_days(destination, day_count)
        else:
            logger.info(f"🗓️  Parsed {len(days)} itinerary days for {destination}")

        return ItineraryDraft(
            title=f"{len(days)}-Day Itinerary for {destination}",
            destination=destination,
            days=days,
        )

    def parse_days(self, text: str, destination: str = DEFAULT_DESTINATION) -> List[ItineraryDay]:
        """Split on 'Day N' headers; repeated day numbers keep the first section"""

        headers = list(DAY_HEADER.finditer(text))
        sections: Dict[int, Tuple[str, str]] = {}

        for i, header in enumerate(headers):
            day_number = int(header.group(1))
            if day_number < 1 or day_number in sections:
                continue

            end = headers[i + 1].start() if i + 1 < len(headers) else len(text)
            sections[day_number] = (header.group(2), text[header.end():end])

        days = [
            self._build_day(number, remainder, body, destination)
            for number, (remainder, body) in sections.items()
        ]
        return sorted(days, key=lambda d: d.day)

    def _build_day(self, number: int, remainder: str, body: str, destination: str) -> ItineraryDay:

        activities = run_strategies(ACTIVITY_STRATEGIES, body) or []
        if not activities:
            activities = [Activity(time=DEFAULT_SLOTS[0], description=f"Explore {destination}")]

        title = self._pick_title([remainder] + body.splitlines())
        if not title:
            title = self._title_from_activity(activities[0].description)

        return ItineraryDay(day=number, title=title, activities=activities)

    @staticmethod
    def _pick_title(lines: List[str]) -> Optional[str]:
        """First line that is not an activity line and reads like a heading"""

        for line in lines:
            if not line.strip():
                continue
            if TIMED_LINE.match(line) or PERIOD_LINE.match(line) or BULLET_LINE.match(line):
                continue
            candidate = clean_description(line)
            if len(candidate) >= 3 and re.search(r"[A-Za-z]", candidate):
                return truncate(candidate)
        return None

    @staticmethod
    def _title_from_activity(description: str) -> str:
        lowered = description.lower()
        for keywords, title in TITLE_BUCKETS:
            if any(keyword in lowered for keyword in keywords):
                return title
        return truncate(description)

    def default_days(self, destination: str, day_count: int) -> List[ItineraryDay]:
        """Generic plan: arrival day, exploration days, farewell day"""

        days = []
        for number in range(1, day_count + 1):
            if number == 1:
                title, templates = "Day 1: Arrival & Orientation", ARRIVAL_ACTIVITIES
            elif number == day_count:
                title, templates = f"Day {number}: Farewell Day", FAREWELL_ACTIVITIES
            else:
                title, templates = f"Day {number}: Exploring {destination}", EXPLORE_ACTIVITIES

            activities = [
                Activity(time=slot, description=template.format(destination=destination))
                for slot, template in zip(DEFAULT_SLOTS, templates)
            ]
            days.append(ItineraryDay(day=number, title=title, activities=activities))

        return days

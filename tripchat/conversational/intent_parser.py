"""
IntentParser - Rule-based travel parameter extraction
Reads trip details (origin, destination, dates, budget, travelers) out of a
user utterance and proposes updates to the travel session
"""

import logging
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from tripchat.extraction.text_utils import clean_place, display_place, looks_like_place
from tripchat.models.schemas import TravelSession

logger = logging.getLogger(__name__)

INR_PER_USD = 83.0
DEPARTURE_LEAD_DAYS = 30


# ===========================
# 🔧 NORMALIZERS
# ===========================

def normalize_budget(value: str) -> Optional[float]:
    """
    Convert human-written amounts into a float.
    Supports:
    - 1,500 / 1500.50
    - 2k, 2.5k
    - 1m, 1 million
    - 2 lakh
    """

    if not value:
        return None

    text = value.lower().replace(",", "").strip()

    match = re.match(r"(\d+(?:\.\d+)?)\s*(k|m|million|thousand|lakh|lakhs)?\b", text)
    if not match:
        return None

    amount = float(match.group(1))
    suffix = match.group(2)

    if suffix in ("k", "thousand"):
        amount *= 1_000
    elif suffix in ("m", "million"):
        amount *= 1_000_000
    elif suffix in ("lakh", "lakhs"):
        amount *= 100_000

    return amount


def normalize_travelers(value) -> Optional[int]:
    """Handle: '2 travelers', '2 people', '2 pax'"""
    if value is None:
        return None

    if isinstance(value, (int, float)):
        return int(value)

    m = re.findall(r"\d+", str(value))
    if m:
        return int(m[0])

    return None


# ===========================
# PATTERNS
# ===========================

PLACE_WORDS = r"([A-Za-z][A-Za-z'\-]*(?:\s+[A-Za-z][A-Za-z'\-]*){0,5}?)"

ORIGIN_PATTERN = re.compile(r"\b(?:from|in)\s+" + PLACE_WORDS + r"\s+(?:to|and)\b", re.IGNORECASE)

DESTINATION_PATTERN = re.compile(
    r"\b(?:to|visit|plan)\s+" + PLACE_WORDS + r"(?=\s+(?:for|from|with|on|in)\b|\s+\d|\s*[.,!?]|\s*$)",
    re.IGNORECASE
)

ISO_DATE_PATTERN = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")

TRIP_LENGTH_PATTERN = re.compile(r"\b(\d{1,2})\s*-?\s*(?:days?|nights?)\b", re.IGNORECASE)

AMOUNT = r"(\d[\d,]*(?:\.\d+)?(?:\s*(?:k|m|million|thousand|lakhs?)\b)?)"

INR_PATTERNS = [
    re.compile(r"(?:₹|\brs\.?|\binr)\s*" + AMOUNT, re.IGNORECASE),
    re.compile(AMOUNT + r"\s*(?:inr|rupees?)\b", re.IGNORECASE),
]

USD_PATTERNS = [
    re.compile(r"(?:\$|\busd)\s*" + AMOUNT, re.IGNORECASE),
    re.compile(AMOUNT + r"\s*(?:usd|dollars?)\b", re.IGNORECASE),
]

TRAVELERS_PATTERN = re.compile(
    r"\b(\d{1,2})\s*(?:travell?ers?|people|persons?|adults?|pax|guests?|of\s+us)\b",
    re.IGNORECASE
)


# ===========================
# MAIN INTENT PARSER
# ===========================

class IntentParser:
    """Propose travel session updates from a user message"""

    def __init__(self):
        logger.info("✅ IntentParser initialized")

    def update_session(
        self,
        message: str,
        session: TravelSession,
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Fields the message would change.

        Never mutates `session`. Known origin, destination and budget are not
        overwritten; explicit dates are.
        """

        today = today or date.today()
        changes: Dict[str, Any] = {}

        if not session.origin:
            origin = self._first_place(ORIGIN_PATTERN, message)
            if origin:
                changes["origin"] = origin

        if not session.destination:
            destination = self._first_place(DESTINATION_PATTERN, message, exclude=changes.get("origin"))
            if destination:
                changes["destination"] = destination

        changes.update(self._parse_dates(message, session, today))

        if session.budget is None:
            budget = self._parse_budget(message)
            if budget is not None:
                changes["budget"] = budget
                changes["currency"] = "USD"

        if session.travelers == 1:
            travelers = self._parse_travelers(message)
            if travelers and travelers != session.travelers:
                changes["travelers"] = travelers

        if changes:
            logger.info(f"🎯 Session updates: {changes}")

        return changes

    @staticmethod
    def _first_place(pattern: re.Pattern, message: str, exclude: Optional[str] = None) -> Optional[str]:
        for match in pattern.finditer(message):
            name = clean_place(match.group(1))
            if not name or not looks_like_place(name):
                continue
            name = display_place(name)
            if exclude and name.lower() == exclude.lower():
                continue
            return name
        return None

    @staticmethod
    def _parse_dates(message: str, session: TravelSession, today: date) -> Dict[str, date]:
        explicit: List[date] = []
        for raw in ISO_DATE_PATTERN.findall(message):
            try:
                explicit.append(date.fromisoformat(raw))
            except ValueError:
                logger.debug(f"Ignoring invalid date: {raw}")

        if len(explicit) >= 2:
            departure, ret = sorted(explicit[:2])
            return {"departure_date": departure, "return_date": ret}

        length = TRIP_LENGTH_PATTERN.search(message)
        days = int(length.group(1)) if length else None

        if len(explicit) == 1:
            departure = explicit[0]
            changes = {"departure_date": departure}
            # Keep the trip length we already know
            days = days or session.trip_days()
            if days:
                changes["return_date"] = departure + timedelta(days=days)
            return changes

        if session.departure_date or not days:
            return {}

        departure = today + timedelta(days=DEPARTURE_LEAD_DAYS)
        return {"departure_date": departure, "return_date": departure + timedelta(days=days)}

    @staticmethod
    def _parse_budget(message: str) -> Optional[float]:
        # Rupee amounts take precedence over dollar amounts
        for pattern in INR_PATTERNS:
            match = pattern.search(message)
            if match:
                amount = normalize_budget(match.group(1))
                if amount is not None:
                    return round(amount / INR_PER_USD, 2)

        for pattern in USD_PATTERNS:
            match = pattern.search(message)
            if match:
                amount = normalize_budget(match.group(1))
                if amount is not None:
                    return round(amount, 2)

        return None

    @staticmethod
    def _parse_travelers(message: str) -> Optional[int]:
        match = TRAVELERS_PATTERN.search(message)
        if not match:
            return None
        count = normalize_travelers(match.group(1))
        return count if count and count >= 1 else None


# Singleton instance
_intent_parser = None

def get_intent_parser() -> IntentParser:
    """Get singleton IntentParser instance"""
    global _intent_parser
    if _intent_parser is None:
        _intent_parser = IntentParser()
    return _intent_parser

"""
Unit tests for itinerary extraction.

Tests day segmentation, activity line styles, titles, destination
resolution and the default template.
"""

import pytest

from tripchat.extraction.itinerary import ItineraryExtractor, normalize_time


@pytest.fixture
def extractor():
    return ItineraryExtractor()


TIMED_REPLY = """Here's your itinerary for Kyoto:

Day 1: Temples of Higashiyama
9:00 AM - Visit Kiyomizu-dera
1:00 PM - Lunch in Gion
7:00 PM - Walk along Pontocho

Day 2: Arashiyama
8:30 AM - Bamboo grove
2:00 PM - Monkey park
"""


class TestNormalizeTime:
    """Tests for time normalization."""

    def test_variants(self):
        """Compact, dotted and 24-hour times are normalized."""
        assert normalize_time("9am") == "9:00 AM"
        assert normalize_time("9:30 p.m.") == "9:30 PM"
        assert normalize_time("14:30") == "2:30 PM"
        assert normalize_time("12 PM") == "12:00 PM"
        assert normalize_time("12:15 AM") == "12:15 AM"


class TestParseDays:
    """Tests for day segmentation and activities."""

    def test_timed_lines(self, extractor):
        """Headers split days; timed lines become activities."""
        draft = extractor.extract(TIMED_REPLY, "Plan a trip to Kyoto")

        assert draft is not None
        assert draft.destination == "Kyoto"
        assert draft.title == "2-Day Itinerary for Kyoto"
        assert [d.title for d in draft.days] == ["Temples of Higashiyama", "Arashiyama"]
        assert draft.days[0].activities[0].time == "9:00 AM"
        assert draft.days[0].activities[0].description == "Visit Kiyomizu-dera"
        assert len(draft.days[1].activities) == 2

    def test_idempotent(self, extractor):
        """Parsing the same text twice gives the same days."""
        first = extractor.extract(TIMED_REPLY, "Plan a trip to Kyoto")
        second = extractor.extract(TIMED_REPLY, "Plan a trip to Kyoto")
        assert first.days == second.days
        assert first.title == second.title

    def test_period_lines(self, extractor):
        """'Morning:' style lines map to fixed times."""
        text = "Itinerary\nDay 1\nMorning: Senso-ji temple\nAfternoon: Ueno park\nEvening: Dinner in Asakusa"
        day = extractor.extract(text).days[0]
        assert [a.time for a in day.activities] == ["9:00 AM", "2:00 PM", "7:00 PM"]

    def test_bullets(self, extractor):
        """Plain bullets get rotating times."""
        text = "Day 1:\n- Visit the Louvre museum\n- Walk the Seine\n- Eiffel Tower at night"
        day = extractor.parse_days(text, "Paris")[0]
        assert [a.time for a in day.activities] == ["8:00 AM", "10:30 AM", "1:00 PM"]

    def test_raw_lines(self, extractor):
        """Long unformatted lines are spaced two hours apart."""
        text = "Day 1\nExplore the old town streets\nHave lunch by the river bank"
        day = extractor.parse_days(text, "Prague")[0]
        assert [a.time for a in day.activities] == ["8:00 AM", "10:00 AM"]

    def test_empty_day_gets_placeholder(self, extractor):
        """A header with no usable lines still yields one activity."""
        day = extractor.parse_days("Day 1: Rest", "Lisbon")[0]
        assert len(day.activities) == 1
        assert day.activities[0].description == "Explore Lisbon"

    def test_duplicate_day_numbers_keep_first(self, extractor):
        """A repeated 'Day 1' header does not add a day."""
        text = "Day 1: First\n9:00 AM - A thing to do\nDay 1: Again\n10:00 AM - Another\nDay 2: Second\n9:00 AM - More"
        days = extractor.parse_days(text)
        assert [d.day for d in days] == [1, 2]
        assert days[0].title == "First"

    def test_days_sorted(self, extractor):
        """Out-of-order headers come back sorted."""
        text = "Day 2: Later\n9:00 AM - B stuff\nDay 1: Earlier\n9:00 AM - A stuff"
        assert [d.day for d in extractor.parse_days(text)] == [1, 2]


class TestTitles:
    """Tests for day titles."""

    def test_title_from_keyword_bucket(self, extractor):
        """Without a header title, the first activity picks a themed title."""
        text = "Day 1\n9:00 AM - Visit Fushimi Inari shrine"
        assert extractor.parse_days(text)[0].title == "Cultural Exploration"

    def test_long_titles_truncated(self, extractor):
        """Titles are kept under fifty characters."""
        text = "Day 1: " + "A very long heading that goes on and on about everything" + "\n9:00 AM - x y z"
        title = extractor.parse_days(text)[0].title
        assert len(title) < 50
        assert title.endswith("...")


class TestDefaultTemplate:
    """Tests for the template used when no day headers exist."""

    def test_not_an_itinerary(self, extractor):
        """Replies that never mention an itinerary give None."""
        assert extractor.extract("Tokyo is lovely in spring.", "tell me about Tokyo") is None

    def test_template_shape(self, extractor):
        """Day count from the utterance; arrival, exploring and farewell days."""
        draft = extractor.extract(
            "I'd be happy to put together an itinerary for you!",
            "I want a 4 day trip to Tokyo"
        )

        assert draft.destination == "Tokyo"
        assert draft.title == "4-Day Itinerary for Tokyo"
        assert [d.title for d in draft.days] == [
            "Day 1: Arrival & Orientation",
            "Day 2: Exploring Tokyo",
            "Day 3: Exploring Tokyo",
            "Day 4: Farewell Day",
        ]
        assert all(len(d.activities) == 6 for d in draft.days)
        assert draft.days[0].activities[0].time == "8:00 AM"
        assert "Tokyo" in draft.days[0].activities[0].description

    def test_default_day_count_and_destination(self, extractor):
        """No count and no place: three days for 'Your Destination'."""
        draft = extractor.extract("Here is an itinerary idea.", "help me")
        assert len(draft.days) == 3
        assert draft.destination == "Your Destination"

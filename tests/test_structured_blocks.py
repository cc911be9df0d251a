"""
Unit tests for LOCAL_FOOD / LOCAL_ATTRACTIONS extraction.

Tests the JSON, field-regex, prose and sentence tiers, the tolerant JSON
repair, deduplication and block stripping.
"""

import json

import pytest

from tripchat.extraction.structured_blocks import (
    StructuredBlockExtractor,
    find_block,
    parse_tolerant_json,
    strip_structured_blocks,
)


@pytest.fixture
def extractor():
    return StructuredBlockExtractor()


class TestTolerantJson:
    """Tests for parse_tolerant_json."""

    def test_valid_json(self):
        """Clean JSON parses unchanged."""
        assert parse_tolerant_json('[{"name": "Pho"}]') == [{"name": "Pho"}]

    def test_single_quotes_barewords_trailing_commas(self):
        """Common model mistakes are repaired."""
        raw = "[{name: 'Senso-ji', hours: '2 hours', price: 'Free',},]"
        assert parse_tolerant_json(raw) == [{"name": "Senso-ji", "hours": "2 hours", "price": "Free"}]

    def test_newlines_inside_strings(self):
        """Raw newlines inside values become spaces."""
        raw = "[{'name': 'Pho', 'description': 'line one\nline two'}]"
        assert parse_tolerant_json(raw)[0]["description"] == "line one line two"

    def test_escaped_quote_in_single_quoted_string(self):
        """\\' inside a single-quoted value is an apostrophe."""
        raw = "[{'name': 'Nathan\\'s Hot Dogs'}]"
        assert parse_tolerant_json(raw)[0]["name"] == "Nathan's Hot Dogs"

    def test_keywords_kept(self):
        """true/false/null are not quoted as keys."""
        assert parse_tolerant_json("[{open: true, closed: null}]") == [{"open": True, "closed": None}]

    def test_unparseable(self):
        """Hopeless input gives None instead of raising."""
        assert parse_tolerant_json("not json at all") is None
        assert parse_tolerant_json("") is None


class TestFoodExtraction:
    """Tests for extract_food."""

    def test_json_block(self, extractor):
        """A clean block becomes FoodItems with image URLs."""
        items = [{
            "name": "Ramen",
            "price": "$10",
            "description": "Noodle soup",
            "location": "Shinjuku",
            "image_keyword": "ramen bowl",
        }]
        text = "Try these!\n\nLOCAL_FOOD: " + json.dumps(items)

        food = extractor.extract_food(text, "Tokyo")

        assert len(food) == 1
        assert food[0].name == "Ramen"
        assert food[0].price == "$10"
        assert food[0].description == "Noodle soup"
        assert food[0].location == "Shinjuku"
        assert food[0].image_url == "https://source.unsplash.com/featured/?ramen+bowl"

    def test_fenced_block(self, extractor):
        """Blocks wrapped in a code fence are found."""
        text = 'LOCAL_FOOD:\n```json\n[{"name": "Paella"}]\n```'
        assert [f.name for f in extractor.extract_food(text)] == ["Paella"]

    def test_defaults(self, extractor):
        """Missing price, location and keyword fall back to defaults."""
        food = extractor.extract_food('LOCAL_FOOD: [{"name": "Pad Thai"}]', "Bangkok")[0]
        assert food.price == "Varies"
        assert food.location == "Bangkok"
        assert food.image_url == "https://source.unsplash.com/featured/?pad+thai"

    def test_field_regex_on_broken_block(self, extractor):
        """A block JSON cannot repair is read field by field."""
        text = (
            'LOCAL_FOOD: [{"name": "Pho", "price": "$5" "description": "Soup"}, '
            '{"name": "Banh Mi", "price": "$3"}]'
        )
        food = extractor.extract_food(text, "Hanoi")
        assert [f.name for f in food] == ["Pho", "Banh Mi"]
        assert food[0].price == "$5"
        assert food[0].description == "Soup"

    def test_prose_section(self, extractor):
        """List items under a 'Local Cuisine' heading."""
        text = (
            "Local Cuisine\n"
            "- Pho: Beef noodle soup for about $5\n"
            "- Banh Mi - Crusty sandwich\n"
            "\n"
            "Enjoy!"
        )
        food = extractor.extract_food(text)
        assert [f.name for f in food] == ["Pho", "Banh Mi"]
        assert food[0].price == "$5"
        assert food[1].description == "Crusty sandwich"

    def test_sentence_patterns(self, extractor):
        """Dishes named in running text."""
        text = (
            "You should try the famous Takoyaki while you're there, "
            "and a popular street food called Okonomiyaki."
        )
        names = {f.name for f in extractor.extract_food(text, "Osaka")}
        assert names == {"Takoyaki", "Okonomiyaki"}

    def test_dedupe_by_name(self, extractor):
        """Names differing only in case/whitespace appear once."""
        text = 'LOCAL_FOOD: [{"name": "Ramen"}, {"name": "ramen "}, {"name": "Gyoza"}]'
        assert [f.name for f in extractor.extract_food(text)] == ["Ramen", "Gyoza"]

    def test_nothing_found(self, extractor):
        """Replies without food mentions give an empty list."""
        assert extractor.extract_food("Have a great trip!") == []


class TestAttractionExtraction:
    """Tests for extract_attractions."""

    def test_json_block_with_hours(self, extractor):
        """'hours' becomes the attraction duration."""
        text = "LOCAL_ATTRACTIONS: [{name: 'Senso-ji', hours: '2 hours', price: 'Free',},]"
        attraction = extractor.extract_attractions(text, "Tokyo")[0]
        assert attraction.name == "Senso-ji"
        assert attraction.duration == "2 hours"
        assert attraction.price == "Free"
        assert attraction.location == "Tokyo"

    def test_bare_attractions_label(self, extractor):
        """A block labelled just ATTRACTIONS is read and stripped."""
        text = 'Tokyo has plenty to see.\n\nATTRACTIONS: [{"name": "Senso-ji", "price": "Free"}]'
        assert [a.name for a in extractor.extract_attractions(text, "Tokyo")] == ["Senso-ji"]
        assert strip_structured_blocks(text) == "Tokyo has plenty to see."

    def test_prose_with_duration(self, extractor):
        """Durations are read out of prose descriptions."""
        text = "Top Attractions:\n1. Louvre - World-famous museum, allow 3 hours\n"
        attraction = extractor.extract_attractions(text, "Paris")[0]
        assert attraction.name == "Louvre"
        assert attraction.duration == "3 hours"

    def test_sentence_patterns(self, extractor):
        """'visit the X' style mentions."""
        text = "Be sure to visit the Louvre Museum and explore the Latin Quarter."
        names = [a.name for a in extractor.extract_attractions(text, "Paris")]
        assert names == ["Louvre Museum", "Latin Quarter"]


class TestStripBlocks:
    """Tests for removing blocks from the visible reply."""

    def test_find_block_bounds(self):
        """find_block returns the bracketed text."""
        start, end, block = find_block('x LOCAL_FOOD: [{"name": "a]b"}] y', ("LOCAL_FOOD",))
        assert block == '[{"name": "a]b"}]'

    def test_strip_plain_and_fenced(self):
        """Both blocks and their fences are removed."""
        text = (
            "Here you go.\n\n"
            'LOCAL_FOOD: [{"name": "Ramen"}]\n\n'
            'LOCAL_ATTRACTIONS: ```json\n[{"name": "Senso-ji"}]\n```\n'
            "Enjoy!"
        )
        assert strip_structured_blocks(text) == "Here you go.\n\nEnjoy!"

    def test_text_without_blocks_unchanged(self):
        """Ordinary replies pass through."""
        assert strip_structured_blocks("Just text.") == "Just text."

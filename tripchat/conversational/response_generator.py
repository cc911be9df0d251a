"""
ResponseGenerator - Assistant replies from the model, with an offline fallback

The fallback writes replies in the same shape the model is asked for
("Day N:" headers, timed activity lines, LOCAL_FOOD / LOCAL_ATTRACTIONS
blocks), so downstream extraction never needs to know which one answered.

Author: TripChat Team
Date: 2024
"""

import json
import logging
import re
from typing import Dict, List, Optional

from tripchat.conversational.prompts import build_system_instruction
from tripchat.models.chat_schemas import ConversationEntry, Role
from tripchat.models.schemas import TravelSession
from tripchat.utils.llm_client import GeminiClient, get_llm_client

logger = logging.getLogger(__name__)


CITY_GUIDES: Dict[str, Dict] = {
    "tokyo": {
        "name": "Tokyo",
        "intro": "Tokyo, a city in Japan, blends centuries-old temples with neon-lit streets and world-class food.",
        "neighborhoods": "Shinjuku, Shibuya and Asakusa",
        "attractions": [
            ("Senso-ji Temple", "Free", "Tokyo's oldest temple, reached through the Nakamise shopping street", "1-2 hours"),
            ("Meiji Shrine", "Free", "Forested Shinto shrine next to Harajuku", "1 hour"),
            ("Shibuya Crossing", "Free", "The world's busiest pedestrian scramble", "30 minutes"),
        ],
        "food": [
            ("Sushi", "$15-60", "Fresh nigiri, best at Tsukiji Outer Market"),
            ("Ramen", "$8-15", "Rich noodle soup; try tonkotsu or shoyu"),
            ("Takoyaki", "$5", "Octopus-filled batter balls from street stalls"),
        ],
        "days": [
            ("Arrival & Shinjuku", ["Check in and settle into your hotel", "Explore Shinjuku Gyoen garden", "Dinner in Omoide Yokocho"]),
            ("Temples & Tradition", ["Visit Senso-ji Temple in Asakusa", "Lunch on Nakamise street", "Sunset at Tokyo Skytree"]),
            ("Modern Tokyo", ["Walk around Meiji Shrine", "Shopping on Takeshita Street", "Cross Shibuya Crossing at night"]),
            ("Markets & Museums", ["Breakfast at Tsukiji Outer Market", "Explore the Tokyo National Museum", "Dinner in Ginza"]),
        ],
    },
    "paris": {
        "name": "Paris",
        "intro": "Paris, the capital of France, is famous for its art, cafes and riverside walks.",
        "neighborhoods": "Le Marais, Saint-Germain and Montmartre",
        "attractions": [
            ("Eiffel Tower", "$30", "Iconic iron tower with views over the city", "2 hours"),
            ("Louvre Museum", "$22", "Home of the Mona Lisa and thousands of masterpieces", "3 hours"),
            ("Montmartre", "Free", "Hilltop artists' quarter crowned by Sacre-Coeur", "2 hours"),
        ],
        "food": [
            ("Croissant", "$2", "Buttery pastry from any good boulangerie"),
            ("Steak Frites", "$25", "Bistro classic of steak and fries"),
            ("Macarons", "$3", "Colourful almond meringue sandwiches"),
        ],
        "days": [
            ("Arrival & the Seine", ["Check in and stroll along the Seine", "Visit Notre-Dame from the outside", "Dinner in the Latin Quarter"]),
            ("Art & Icons", ["Explore the Louvre Museum", "Picnic in the Tuileries Garden", "Evening at the Eiffel Tower"]),
            ("Montmartre", ["Climb to Sacre-Coeur", "Lunch at a Montmartre cafe", "Cabaret show in Pigalle"]),
        ],
    },
    "new york": {
        "name": "New York",
        "intro": "New York, a city in the United States, never sleeps and always has something new to see.",
        "neighborhoods": "Midtown, SoHo and Brooklyn",
        "attractions": [
            ("Central Park", "Free", "843 acres of lawns, lakes and walking paths", "2 hours"),
            ("Statue of Liberty", "$25", "Ferry ride to the symbol of freedom", "3 hours"),
            ("Metropolitan Museum of Art", "$30", "One of the largest art museums in the world", "3 hours"),
        ],
        "food": [
            ("New York Pizza", "$4", "Foldable thin-crust slices"),
            ("Bagel with Lox", "$12", "Bagel with cream cheese and smoked salmon"),
            ("Pastrami Sandwich", "$25", "Piled-high deli classic"),
        ],
        "days": [
            ("Arrival & Midtown", ["Check in and walk to Times Square", "Visit the Empire State Building", "Dinner in Hell's Kitchen"]),
            ("Parks & Museums", ["Morning walk through Central Park", "Explore the Metropolitan Museum of Art", "Broadway show"]),
            ("Downtown", ["Ferry to the Statue of Liberty", "Walk the Brooklyn Bridge", "Dinner in DUMBO"]),
        ],
    },
    "barcelona": {
        "name": "Barcelona",
        "intro": "Barcelona, a city in Spain, pairs Gaudi architecture with Mediterranean beaches.",
        "neighborhoods": "the Gothic Quarter, El Born and Eixample",
        "attractions": [
            ("Sagrada Familia", "$30", "Gaudi's unfinished basilica", "2 hours"),
            ("Park Guell", "$12", "Mosaic-covered park with city views", "2 hours"),
            ("Gothic Quarter", "Free", "Medieval lanes around the cathedral", "2 hours"),
        ],
        "food": [
            ("Paella", "$20", "Saffron rice with seafood"),
            ("Patatas Bravas", "$6", "Fried potatoes with spicy sauce"),
            ("Crema Catalana", "$6", "Caramelised custard dessert"),
        ],
        "days": [
            ("Arrival & Gothic Quarter", ["Check in and wander the Gothic Quarter", "Tapas lunch in El Born", "Sunset at Barceloneta beach"]),
            ("Gaudi Day", ["Visit the Sagrada Familia", "Explore Park Guell", "Dinner in Gracia"]),
            ("Markets & Montjuic", ["Breakfast at La Boqueria market", "Cable car up Montjuic", "Magic Fountain show"]),
        ],
    },
    "london": {
        "name": "London",
        "intro": "London, the capital of the United Kingdom, mixes royal history with lively markets.",
        "neighborhoods": "Covent Garden, South Bank and Kensington",
        "attractions": [
            ("British Museum", "Free", "World history under one roof", "3 hours"),
            ("Tower of London", "$40", "Castle and home of the Crown Jewels", "3 hours"),
            ("Borough Market", "Free", "Historic food market by London Bridge", "1 hour"),
        ],
        "food": [
            ("Fish and Chips", "$18", "Battered cod with thick-cut chips"),
            ("Sunday Roast", "$28", "Roast meat with Yorkshire pudding"),
            ("Full English Breakfast", "$15", "Eggs, bacon, sausage, beans and toast"),
        ],
        "days": [
            ("Arrival & Westminster", ["Check in and walk past Big Ben", "Ride the London Eye", "Dinner in Covent Garden"]),
            ("Museums & Markets", ["Explore the British Museum", "Lunch at Borough Market", "Evening on the South Bank"]),
            ("Royal London", ["Visit the Tower of London", "Afternoon tea in Kensington", "West End show"]),
        ],
    },
}

INTENT_KEYWORDS = {
    "itinerary": ("itinerary", "plan", "schedule", "day by day", "days", "trip"),
    "food": ("food", "eat", "restaurant", "cuisine", "dish"),
    "hotel": ("hotel", "stay", "accommodation", "hostel", "where to sleep"),
    "weather": ("weather", "temperature", "climate", "season", "rain"),
}

ACTIVITY_TIMES = ["9:00 AM", "1:00 PM", "7:00 PM"]

GENERIC_DAYS = [
    ("Arrival & Orientation", ["Check in to your accommodation", "Walk around the city center", "Welcome dinner with local dishes"]),
    ("Highlights", ["Visit the main landmarks", "Lunch at a local market", "Evening food tour"]),
    ("Culture & Museums", ["Explore the top museum", "Relax in a city park", "Dinner in the old town"]),
]

CAPABILITIES_MESSAGE = """I'm your AI travel assistant! I can help you:
- Find destinations that match your interests and budget
- Build a day-by-day itinerary
- Recommend local food and attractions
- Check the typical weather for your dates
- Compare flight and hotel options

Tell me where you'd like to go, for example: "Plan a 3 day trip to Tokyo"."""


def detect_intents(text: str) -> List[str]:
    lowered = text.lower()
    # Prefix match so "eating" counts but "weather" does not trigger "eat"
    return [
        intent for intent, keywords in INTENT_KEYWORDS.items()
        if any(re.search(rf"\b{re.escape(keyword)}", lowered) for keyword in keywords)
    ]


class FallbackResponder:
    """Deterministic replies for when the model is unavailable"""

    def respond(self, message: str, session: Optional[TravelSession] = None) -> str:
        guide = self._find_guide(message, session)
        destination = guide["name"] if guide else (session.destination if session else None)
        intents = detect_intents(message)

        if not destination:
            return CAPABILITIES_MESSAGE

        if not intents and not guide:
            return CAPABILITIES_MESSAGE

        parts = [guide["intro"] if guide else f"Great choice! Here are some ideas for {destination}."]

        if "itinerary" in intents:
            parts.append(self._itinerary(destination, guide, self._day_count(message, session)))
        if "weather" in intents:
            parts.append(
                f"The weather in {destination} changes with the season, so check the forecast "
                f"before you pack and bring layers for cooler evenings."
            )
        if "hotel" in intents:
            area = guide["neighborhoods"] if guide else "the city center"
            parts.append(
                f"For hotels, look at {area}: they keep you close to the sights and public transport. "
                f"Share your dates and budget and I'll look up options."
            )
        if "food" in intents and guide:
            parts.append(f"You can't leave {destination} without trying the local food.")
            parts.append(self._food_block(guide))

        if guide and ("itinerary" in intents or "food" not in intents):
            parts.append(self._attractions_block(guide))

        return "\n\n".join(parts)

    @staticmethod
    def _find_guide(message: str, session: Optional[TravelSession]) -> Optional[Dict]:
        candidates = [message.lower()]
        if session and session.destination:
            candidates.append(session.destination.lower())

        for text in candidates:
            for key, guide in CITY_GUIDES.items():
                if re.search(rf"\b{re.escape(key)}\b", text):
                    return guide
        return None

    @staticmethod
    def _day_count(message: str, session: Optional[TravelSession]) -> int:
        match = re.search(r"\b(\d{1,2})\s*-?\s*days?\b", message, re.IGNORECASE)
        if match and 1 <= int(match.group(1)) <= 14:
            return int(match.group(1))
        if session and session.trip_days():
            return max(1, min(session.trip_days(), 14))
        return 3

    @staticmethod
    def _itinerary(destination: str, guide: Optional[Dict], day_count: int) -> str:
        days = guide["days"] if guide else GENERIC_DAYS
        lines = [f"Here's a {day_count}-day itinerary for {destination}:"]

        for number in range(1, day_count + 1):
            title, activities = days[(number - 1) % len(days)]
            lines.append("")
            lines.append(f"Day {number}: {title}")
            for time, activity in zip(ACTIVITY_TIMES, activities):
                lines.append(f"{time} - {activity}")

        return "\n".join(lines)

    @staticmethod
    def _food_block(guide: Dict) -> str:
        items = [
            {
                "name": name,
                "price": price,
                "description": description,
                "location": guide["name"],
                "image_keyword": f"{name} food",
            }
            for name, price, description in guide["food"]
        ]
        return "LOCAL_FOOD: " + json.dumps(items, ensure_ascii=False)

    @staticmethod
    def _attractions_block(guide: Dict) -> str:
        items = [
            {
                "name": name,
                "price": price,
                "description": description,
                "location": guide["name"],
                "hours": hours,
                "image_keyword": name,
            }
            for name, price, description, hours in guide["attractions"]
        ]
        return "LOCAL_ATTRACTIONS: " + json.dumps(items, ensure_ascii=False)


class ResponseGenerator:
    """Model reply for the current history, or a canned one"""

    def __init__(
        self,
        llm_client: Optional[GeminiClient] = None,
        fallback: Optional[FallbackResponder] = None
    ):
        self.llm_client = llm_client or get_llm_client()
        self.fallback = fallback or FallbackResponder()
        logger.info("✅ ResponseGenerator initialized")

    async def generate(
        self,
        history: List[ConversationEntry],
        session: Optional[TravelSession] = None
    ) -> str:
        """Reply to the last user entry in `history`"""

        last_user_message = next(
            (entry.content for entry in reversed(history) if entry.role == Role.USER),
            ""
        )

        try:
            return await self.llm_client.chat(build_system_instruction(session), history)
        except Exception as e:
            logger.warning(f"⚠️  Model unavailable, using canned reply: {e}")
            return self.fallback.respond(last_user_message, session)


# Singleton instance
_response_generator = None

def get_response_generator() -> ResponseGenerator:
    """Get singleton ResponseGenerator instance"""
    global _response_generator
    if _response_generator is None:
        _response_generator = ResponseGenerator()
    return _response_generator

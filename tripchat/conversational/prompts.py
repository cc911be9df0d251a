"""
Prompt text for the travel assistant model
"""

from typing import Optional

from tripchat.models.schemas import TravelSession


SYSTEM_PROMPT = """You are an AI travel assistant that helps users plan trips. You can:
1. Suggest destinations based on interests, budget and season
2. Build day-by-day itineraries
3. Recommend local food, restaurants and attractions
4. Describe typical weather and the best time to visit
5. Advise on flights, hotels and getting around

Be friendly and concise. Mention place names exactly as they are commonly written.
When you describe a city for the first time, introduce it as "<City>, a city in <Country>".

FORMAT RULES
- Itineraries: start each day on its own line as "Day N: <short title>", then list
  activities one per line as "9:00 AM - <activity>".
- When you recommend local dishes, end your reply with a line
  LOCAL_FOOD: [{"name": "...", "price": "$..", "description": "...", "location": "...", "image_keyword": "..."}]
- When you recommend attractions, end your reply with a line
  LOCAL_ATTRACTIONS: [{"name": "...", "price": "$..", "description": "...", "location": "...", "hours": "...", "image_keyword": "..."}]
- These blocks must be valid JSON arrays. Do not mention them in the text."""


def build_context_line(session: Optional[TravelSession]) -> Optional[str]:
    """Trip details known so far, for the model's benefit"""

    if session is None:
        return None

    ctx = []
    if session.origin:
        ctx.append(f"Origin: {session.origin}")
    if session.destination:
        ctx.append(f"Destination: {session.destination}")
    if session.departure_date and session.return_date:
        ctx.append(f"Dates: {session.departure_date} to {session.return_date} ({session.trip_days()} days)")
    if session.budget is not None:
        ctx.append(f"Budget: ${session.budget:,.0f} USD")
    if session.travelers > 1:
        ctx.append(f"Travelers: {session.travelers}")

    if not ctx:
        return None

    return "Known trip details - " + "; ".join(ctx)


def build_system_instruction(session: Optional[TravelSession] = None) -> str:
    context_line = build_context_line(session)
    if context_line:
        return f"{SYSTEM_PROMPT}\n\n{context_line}"
    return SYSTEM_PROMPT

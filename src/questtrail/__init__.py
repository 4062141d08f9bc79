"""QuestTrail: stateless, cookie-carried progression through geolocated quests."""

__version__ = "0.1.0"

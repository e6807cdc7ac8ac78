"""
Constants used across the golf league system.
"""

# Tee sheet defaults
DEFAULT_SLOTS_PER_GROUP = 4
DEFAULT_TEE_INTERVAL_MINUTES = 10

# Score-to-beat: rounds required before a player's own average is shown
SCORE_TO_BEAT_MIN_ROUNDS = 6
SCORE_TO_BEAT_WINDOW = 6  # Most recent rounds averaged

# Outbound SMS
SMS_REQUEST_TIMEOUT_SECONDS = 10.0
TWILIO_API_BASE_URL = "https://api.twilio.com/2010-04-01"

# RSVP reply vocabulary (compared after trim + upper-case)
RSVP_YES_REPLIES = frozenset({"Y", "YES"})
RSVP_NO_REPLIES = frozenset({"N", "NO"})

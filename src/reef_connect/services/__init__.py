"""Domain services for check-ins, presence, messaging and notifications."""

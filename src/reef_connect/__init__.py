"""Reef Connect: check-ins, presence and messaging for BVI boaters."""

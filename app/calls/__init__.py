"""Calls: call lifecycle, participants and LiveKit media tokens."""

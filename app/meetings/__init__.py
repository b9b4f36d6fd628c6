"""Meetings: meeting requests, calendar events and update negotiation."""

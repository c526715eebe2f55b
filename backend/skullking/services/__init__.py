"""Lobby domain services.

HTTP routes and socket handlers call into these modules and pass the
session explicitly, keeping transport concerns out of room logic.
"""

"""Game domain services: the room state machine, vote scoring and the
session/room sweeper.

This package contains pure(ish) domain logic that should be imported by
socket handlers and HTTP routes, keeping transport concerns separated
from core game mechanics.
"""

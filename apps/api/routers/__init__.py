"""Routers package."""

from . import (
    health,
    videos,
    users,
    library,
    search,
)

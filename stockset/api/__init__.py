"""HTTP routers for the lending service."""

from .lending_router import build_lending_router
from .router import build_router

__all__ = ["build_lending_router", "build_router"]

"""TenderCalc API route modules.

Each module exports a ``router`` (APIRouter instance) that the app includes.

Usage:
    from tendercalc.web.routes import matches
    app.include_router(matches.router)
"""

from tendercalc.web.routes import assessment, matches

__all__ = [
    "assessment",
    "matches",
]

"""
rndvx API routers.
"""

from rndvx.routers.auth import router as auth_router
from rndvx.routers.users import router as users_router
from rndvx.routers.meetings import router as meetings_router
from rndvx.routers.invites import router as invites_router
from rndvx.routers.groups import router as groups_router
from rndvx.routers.places import router as places_router

__all__ = [
    "auth_router",
    "users_router",
    "meetings_router",
    "invites_router",
    "groups_router",
    "places_router",
]

"""
Enumerations shared by the API, the store layer and the privileged functions.
"""

from enum import Enum


class Role(str, Enum):
    """Authorization role stored in `user_roles`."""

    ADMIN = "admin"
    ANIMATOR = "animator"


class MemberType(str, Enum):
    RECREATOR = "recreator"
    ANIMATOR = "animator"
    ADMIN = "admin"


class PhotoCategory(str, Enum):
    """Tag stored on every report photo. Declaration order is upload order."""

    EVENT = "event"
    WORKSHOP = "workshop"
    PAINTING = "painting"
    BALLOON = "balloon"
    ANIMATION = "animation"
    CHARACTERS = "characters"
    DAMAGE = "damage"


class TransportationType(str, Enum):
    UBER = "uber"
    OWN_CAR = "own_car"
    COMPANY_CAR = "company_car"
    OTHER = "other"

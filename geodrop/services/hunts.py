"""Hunt codes: format rules, generation, join-by-code and proximity hints for joined participants."""

import re
import secrets
import string
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from geodrop.crud.drop import DropCRUD
from geodrop.crud.user import UserCRUD
from geodrop.models.drop import DEFAULT_HUNT_DIFFICULTY, Coordinates, DropModel, DropType, HuntDifficulty
from geodrop.models.user import UserModel, utcnow
from geodrop.services.firebase.auth_service import Identity
from geodrop.services.geo import is_within_geofence
from geodrop.utils.exceptions import (
    ExpiredError,
    InternalError,
    InvalidHuntCodeError,
    NotFoundError,
    ValidationError,
)
from geodrop.utils.logger import get_logger

logger = get_logger(__name__)

HUNT_CODE_LENGTH = 6
HUNT_CODE_ALPHABET = string.ascii_uppercase + string.digits
_HUNT_CODE_PATTERN = re.compile(rf"^[A-Za-z0-9]{{{HUNT_CODE_LENGTH}}}$")


class JoinResult(BaseModel):
    """Reduced view of a hunt: never the secret or the files."""

    id: str
    title: str
    description: Optional[str] = None
    difficulty: str
    already_joined: bool = False

    def to_response(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "alreadyJoined": self.already_joined,
        }


def is_valid_hunt_code(code: Any) -> bool:
    """Fixed-length alphanumeric token; case is ignored."""
    return isinstance(code, str) and bool(_HUNT_CODE_PATTERN.match(code))


def normalize_hunt_code(code: str) -> str:
    """Canonical (upper-case) form used for storage and lookup."""
    return code.strip().upper()


def generate_hunt_code() -> str:
    return "".join(secrets.choice(HUNT_CODE_ALPHABET) for _ in range(HUNT_CODE_LENGTH))


async def ensure_hunt_code_available(drops: DropCRUD, code: str) -> str:
    """
    Validate a code for a new hunt and make sure no drop already uses it.

    Returns:
        The normalized code

    Raises:
        ValidationError: Missing, malformed or already taken
    """
    if not code:
        raise ValidationError(message="Hunt drops require a hunt code")
    if not is_valid_hunt_code(code.strip()):
        raise ValidationError(
            message=f"Hunt code must be {HUNT_CODE_LENGTH} letters or digits",
        )
    normalized = normalize_hunt_code(code)
    if await drops.hunt_code_exists(normalized):
        raise ValidationError(message="Hunt code is already in use")
    return normalized


async def allocate_hunt_code(drops: DropCRUD, attempts: int = 5) -> str:
    """
    Generate a code no drop uses yet, for hunts created without one.

    Raises:
        InternalError: Every generated candidate was already taken
    """
    for _ in range(attempts):
        candidate = generate_hunt_code()
        if not await drops.hunt_code_exists(candidate):
            return candidate
    logger.error(f"Could not allocate a free hunt code after {attempts} attempts")
    raise InternalError(message="Could not allocate a hunt code")


async def join_hunt_by_code(
    drops: DropCRUD,
    users: UserCRUD,
    code: Any,
    identity: Identity,
    now: Optional[datetime] = None,
) -> JoinResult:
    """
    Join a hunt by its shareable code.

    Args:
        drops: Drop store
        users: User store
        code: Code as typed by the participant
        identity: The joining caller; their user record is created on first use
        now: Current time

    Returns:
        JoinResult summary of the hunt

    Raises:
        InvalidHuntCodeError: Malformed code (checked before any lookup)
        NotFoundError: No hunt drop with this code
        ExpiredError: The hunt is past its expiry time
    """
    if not isinstance(code, str) or not is_valid_hunt_code(code.strip()):
        raise InvalidHuntCodeError()

    now = now or utcnow()
    normalized = normalize_hunt_code(code)

    drop = await drops.find_hunt_by_code(normalized)
    if drop is None:
        raise NotFoundError(message="No active hunt found with this code")

    if drop.is_expired(now):
        raise ExpiredError(message="This treasure hunt has expired")

    requester = await users.ensure_user(identity.uid, identity.email, identity.display_name)
    already_joined = normalized in requester.joined_hunts

    await drops.record_view(drop.id, now=now)
    await users.add_joined_hunt(identity.uid, normalized, now=now)

    logger.info(
        f"User {identity.uid} joined hunt {drop.id}",
        extra={"extra_data": {"drop_id": drop.id, "already_joined": already_joined}},
    )

    difficulty = drop.hunt_difficulty or DEFAULT_HUNT_DIFFICULTY
    return JoinResult(
        id=drop.id,
        title=drop.title,
        description=drop.description,
        difficulty=difficulty.value,
        already_joined=already_joined,
    )


# ── Proximity hints ───────────────────────────────────────────────

class HintDetail(str, Enum):
    STRONG = "strong"
    MODERATE = "moderate"
    MINIMAL = "minimal"
    NONE = "none"


class HintStrength(BaseModel):
    """How close a participant must be before hints start, and how much they say."""

    max_radius_m: float
    detail: HintDetail


HINT_STRENGTH: Dict[HuntDifficulty, HintStrength] = {
    HuntDifficulty.BEGINNER: HintStrength(max_radius_m=100, detail=HintDetail.STRONG),
    HuntDifficulty.INTERMEDIATE: HintStrength(max_radius_m=50, detail=HintDetail.MODERATE),
    HuntDifficulty.EXPERT: HintStrength(max_radius_m=25, detail=HintDetail.MINIMAL),
    HuntDifficulty.MASTER: HintStrength(max_radius_m=10, detail=HintDetail.NONE),
}

# Upper bounds (meters) of the "close" and "medium" bands; anything further is "far".
CLOSE_HINT_M = 10
MEDIUM_HINT_M = 25

HINT_MESSAGES: Dict[HintDetail, Dict[str, str]] = {
    HintDetail.STRONG: {
        "close": "Very close! You're almost there!",
        "medium": "Getting warmer!",
        "far": "Keep searching in this area",
    },
    HintDetail.MODERATE: {"close": "Close", "medium": "Warmer", "far": "Searching..."},
    HintDetail.MINIMAL: {"close": "Here", "medium": "Nearer", "far": "..."},
}


class ProximityHint(BaseModel):
    """A coarse warmer/colder signal. Never carries the distance itself."""

    show: bool = False
    hint_type: str = "none"
    message: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        return {"showHint": self.show, "hintType": self.hint_type, "message": self.message}


def can_show_proximity_hints(drop: DropModel, user: Optional[UserModel]) -> bool:
    """
    Only hunt drops give hints, and only to users who joined the hunt by its code.
    Normal drops never do, whatever their scope.
    """
    if drop.drop_type != DropType.HUNT or not drop.hunt_code:
        return False
    if user is None:
        return False
    return drop.hunt_code in user.joined_hunts


def get_hint_strength(difficulty: Optional[HuntDifficulty]) -> HintStrength:
    return HINT_STRENGTH[difficulty or DEFAULT_HUNT_DIFFICULTY]


def proximity_hint(drop: DropModel, user: Optional[UserModel], distance_m: float) -> ProximityHint:
    """
    Hint for a participant ``distance_m`` meters from ``drop``.

    Args:
        drop: The hunt drop
        user: The participant's user record, if any
        distance_m: Distance from the participant to the drop

    Returns:
        ProximityHint; ``show`` is False outside the difficulty's hint radius
        or when the user may not see hints at all
    """
    if not can_show_proximity_hints(drop, user):
        return ProximityHint()

    strength = get_hint_strength(drop.hunt_difficulty)
    if distance_m > strength.max_radius_m:
        return ProximityHint()

    if distance_m <= CLOSE_HINT_M:
        hint_type = "close"
    elif distance_m <= MEDIUM_HINT_M:
        hint_type = "medium"
    else:
        hint_type = "far"

    message = HINT_MESSAGES.get(strength.detail, {}).get(hint_type)
    return ProximityHint(show=True, hint_type=hint_type, message=message)


async def get_proximity_hint(
    drops: DropCRUD,
    users: UserCRUD,
    identity: Identity,
    drop_id: str,
    coords: Coordinates,
    now: Optional[datetime] = None,
) -> ProximityHint:
    """
    Load a hunt and the caller's membership, then compute their hint.

    Raises:
        NotFoundError: No such drop, or it has expired
    """
    drop = await drops.get_drop(drop_id)
    if drop is None or drop.is_expired(now or utcnow()):
        raise NotFoundError(message="Drop not found")

    user = await users.get_user(identity.uid)
    check = is_within_geofence(coords, drop.coords, drop.geofence_radius_m)
    return proximity_hint(drop, user, check.distance_m)

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Union


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class ExpenseCategory(str, Enum):
    FUEL = "fuel"
    TOLLS = "tolls"
    FOOD = "food"
    MAINTENANCE = "maintenance"
    CAR_WASH = "car_wash"
    INSURANCE = "insurance"
    TAXES = "taxes"
    OTHER = "other"


class KnownPlatform(str, Enum):
    UBER = "uber"
    NINETY_NINE = "99"
    INDRIVE = "indrive"
    PARTICULAR = "particular"


@dataclass(frozen=True)
class CustomPlatform:
    """A platform outside the known set, kept by name."""

    name: str

    @property
    def value(self) -> str:
        return self.name


Platform = Union[KnownPlatform, CustomPlatform]

KNOWN_PLATFORMS: tuple[KnownPlatform, ...] = tuple(KnownPlatform)


def parse_platform(value: Any) -> Platform | None:
    if isinstance(value, (KnownPlatform, CustomPlatform)):
        return value
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return KnownPlatform(text.lower())
    except ValueError:
        return CustomPlatform(text)


@dataclass(frozen=True)
class PlatformRide:
    platform: Platform
    rides: int = 0


@dataclass(frozen=True)
class Transaction:
    id: str
    date: date
    amount: float
    type: TransactionType
    description: str | None = None
    # income
    platform: Platform | None = None
    platform_rides: tuple[PlatformRide, ...] = ()
    rides: int | None = None
    kilometers: float | None = None
    hours_worked: float | None = None
    # expense
    category: ExpenseCategory | None = None
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str = ""


DEFAULT_PROFILE_NAME = "Usuário"

_ROTATION_DAYS = {
    "1": "Segunda-feira",
    "2": "Segunda-feira",
    "3": "Terça-feira",
    "4": "Terça-feira",
    "5": "Quarta-feira",
    "6": "Quarta-feira",
    "7": "Quinta-feira",
    "8": "Quinta-feira",
    "9": "Sexta-feira",
    "0": "Sexta-feira",
}


def vehicle_rotation_day(license_plate: str | None) -> str:
    """Weekday a plate is barred from circulating, keyed on its last digit."""
    plate = (license_plate or "").strip()
    if not plate:
        return "Desconhecido"
    return _ROTATION_DAYS.get(plate[-1], "Desconhecido")


@dataclass(frozen=True)
class UserProfile:
    id: str = ""
    name: str = DEFAULT_PROFILE_NAME
    email: str = ""
    monthly_goal: float = 0.0
    license_plate: str | None = None
    has_access: bool = False

    @property
    def rotation_day(self) -> str:
        return vehicle_rotation_day(self.license_plate)


def default_profile_for(identity: Identity) -> UserProfile:
    local_part = identity.email.split("@")[0] if identity.email else ""
    return UserProfile(
        id=identity.user_id,
        name=local_part or DEFAULT_PROFILE_NAME,
        email=identity.email,
        monthly_goal=0.0,
    )


@dataclass(frozen=True)
class PlatformShare:
    platform: str
    rides: int
    percentage: int


def _empty_breakdown() -> list[PlatformShare]:
    return [PlatformShare(platform=p.value, rides=0, percentage=0) for p in KNOWN_PLATFORMS]


@dataclass(frozen=True)
class DashboardStats:
    planned: float = 0.0
    realized: float = 0.0
    costs: float = 0.0
    net_profit: float = 0.0
    goal_progress: float = 0.0
    kilometers: int = 0
    rides: int = 0
    hours_worked: float = 0.0
    value_per_km: float = 0.0
    value_per_hour: float = 0.0
    value_per_minute: float = 0.0
    days_remaining: int = 0
    remaining_amount: float = 0.0
    daily_goal_needed: float = 0.0
    platform_breakdown: list[PlatformShare] = field(default_factory=_empty_breakdown)

from __future__ import annotations

import json
import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from domain.errors import ValidationError
from domain.models import (
    ExpenseCategory,
    PlatformRide,
    Transaction,
    TransactionType,
    parse_platform,
)
from domain.records import transaction_to_record

INCOME_FIELDS = ("platform", "platform_rides", "rides", "kilometers", "hours_worked")
EXPENSE_FIELDS = ("category",)

_FIELD_ALIASES = {
    "platformRides": "platform_rides",
    "hoursWorked": "hours_worked",
    "monthlyGoal": "monthly_goal",
    "licensePlate": "license_plate",
}

_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%Y/%m/%d", "%d-%m-%Y")


def parse_quantity(value: Any, field_name: str, *, required: bool = False) -> float | None:
    """
    Strict numeric read used at the input boundary.

    Blank input means "not provided". Numbers may arrive as strings, with
    either a dot or a Brazilian decimal comma ("1.234,50"). Anything else,
    and any negative value, is rejected.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValueError(f"{field_name} is required")
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number")

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace("R$", "").replace(" ", "")
        if "," in text:
            text = text.replace(".", "").replace(",", ".")
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"{field_name} must be a number, got {value!r}") from None
    else:
        raise ValueError(f"{field_name} must be a number, got {type(value).__name__}")

    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"{field_name} must be a finite number")
    if number < 0:
        raise ValueError(f"{field_name} must not be negative")
    return number


def parse_count(value: Any, field_name: str) -> int | None:
    number = parse_quantity(value, field_name)
    if number is None:
        return None
    if not float(number).is_integer():
        raise ValueError(f"{field_name} must be a whole number")
    return int(number)


def parse_input_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return value

    text = value.strip()
    if not text:
        return value
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return value


def _format_errors(exc: PydanticValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        message = str(err.get("msg", "invalid value")).removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    return {_FIELD_ALIASES.get(key, key): value for key, value in data.items()}


class PlatformRideInput(BaseModel):
    platform: str
    rides: int = 0

    @field_validator("platform", mode="before")
    @classmethod
    def clean_platform(cls, value: Any) -> Any:
        platform = parse_platform(value)
        if platform is None:
            raise ValueError("platform is required")
        return platform.value

    @field_validator("rides", mode="before")
    @classmethod
    def coerce_rides(cls, value: Any) -> Any:
        return parse_count(value, "rides") or 0


class TransactionInput(BaseModel):
    """Validated shape of a transaction before it gets an id."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: date
    amount: float
    type: TransactionType
    description: Optional[str] = None
    platform: Optional[str] = None
    platform_rides: List[PlatformRideInput] = Field(default_factory=list, alias="platformRides")
    rides: Optional[int] = None
    kilometers: Optional[float] = None
    hours_worked: Optional[float] = Field(default=None, alias="hoursWorked")
    category: Optional[ExpenseCategory] = None

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("date is required")
        return parse_input_date(value)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        return round(parse_quantity(value, "amount", required=True), 2)

    @field_validator("kilometers", "hours_worked", mode="before")
    @classmethod
    def coerce_quantities(cls, value: Any, info: ValidationInfo) -> Any:
        return parse_quantity(value, info.field_name)

    @field_validator("rides", mode="before")
    @classmethod
    def coerce_rides(cls, value: Any) -> Any:
        return parse_count(value, "rides")

    @field_validator("type", "category", mode="before")
    @classmethod
    def lower_enum_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip().lower()
            return text or None
        return value

    @field_validator("description", mode="before")
    @classmethod
    def clean_description(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("platform", mode="before")
    @classmethod
    def clean_platform(cls, value: Any) -> Any:
        platform = parse_platform(value)
        return platform.value if platform is not None else None

    @field_validator("platform_rides", mode="before")
    @classmethod
    def coerce_platform_rides(cls, value: Any) -> Any:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                raise ValueError("platform_rides must be a list") from None
        return value

    @model_validator(mode="after")
    def validate_attribute_group(self, info: ValidationInfo) -> "TransactionInput":
        # edits that leave a stored record's own attributes alone keep them as stored
        keep_stored = bool(info.context and info.context.get("keep_stored_group"))
        errors: list[str] = []
        if self.type == TransactionType.INCOME:
            if self.category is not None:
                errors.append("income transactions cannot carry a category")
            if self.platform_rides:
                total = sum(pr.rides for pr in self.platform_rides)
                if self.rides is None:
                    self.rides = total
                elif self.rides != total and not keep_stored:
                    errors.append(f"rides ({self.rides}) must equal the sum of platform_rides ({total})")
        else:
            carried = [name for name in INCOME_FIELDS if getattr(self, name) not in (None, [])]
            if carried:
                errors.append(f"expense transactions cannot carry {', '.join(carried)}")
            if not keep_stored and self.category is None:
                errors.append("expense transactions require a category")
            elif not keep_stored and self.category == ExpenseCategory.OTHER and not self.description:
                errors.append("description is required for category 'other'")
        if errors:
            raise ValueError("; ".join(errors))
        return self

    def to_transaction(self, transaction_id: str, metadata: Dict[str, Any] | None = None) -> Transaction:
        return Transaction(
            id=transaction_id,
            date=self.date,
            amount=self.amount,
            type=self.type,
            description=self.description,
            platform=parse_platform(self.platform),
            platform_rides=tuple(
                PlatformRide(platform=parse_platform(pr.platform), rides=pr.rides) for pr in self.platform_rides
            ),
            rides=self.rides,
            kilometers=self.kilometers,
            hours_worked=self.hours_worked,
            category=self.category,
            metadata=dict(metadata or {}),
        )


def parse_transaction_input(
    data: TransactionInput | Mapping[str, Any],
    context: Dict[str, Any] | None = None,
) -> TransactionInput:
    if isinstance(data, TransactionInput):
        return data
    try:
        return TransactionInput.model_validate(_normalize_keys(data), context=context)
    except PydanticValidationError as exc:
        errors = _format_errors(exc)
        raise ValidationError("; ".join(errors), errors=errors) from exc


def merge_transaction_fields(existing: Transaction, changes: Mapping[str, Any]) -> TransactionInput:
    """
    Apply a partial update to a stored record and re-validate the result.

    Changing `type` clears the attributes that belong to the previous type.
    Attributes of the record's own type that the change leaves alone are kept
    as stored, so rows read leniently from storage stay editable.
    """
    changes = _normalize_keys(changes)
    changes.pop("id", None)

    fields = transaction_to_record(existing)
    for key in ("id", "created_at", "updated_at"):
        fields.pop(key, None)

    new_type = changes.get("type", existing.type.value)
    if isinstance(new_type, TransactionType):
        new_type = new_type.value
    new_type = str(new_type).strip().lower()
    if new_type != existing.type.value:
        cleared = INCOME_FIELDS if new_type == TransactionType.EXPENSE.value else EXPENSE_FIELDS
        for name in cleared:
            fields[name] = None

    if "platform_rides" in changes and "rides" not in changes:
        fields["rides"] = None

    own_fields = INCOME_FIELDS if new_type == TransactionType.INCOME.value else EXPENSE_FIELDS + ("description",)
    keep_stored = new_type == existing.type.value and not any(name in changes for name in own_fields)

    fields.update(changes)
    return parse_transaction_input(fields, context={"keep_stored_group": keep_stored})


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    monthly_goal: Optional[float] = Field(default=None, alias="monthlyGoal")
    license_plate: Optional[str] = Field(default=None, alias="licensePlate")

    @field_validator("monthly_goal", mode="before")
    @classmethod
    def coerce_goal(cls, value: Any) -> Any:
        number = parse_quantity(value, "monthly_goal", required=True)
        return round(number, 2)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value.strip():
                raise ValueError("name must not be blank")
            return value.strip()
        return value

    @field_validator("license_plate", mode="before")
    @classmethod
    def clean_plate(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper() or None
        return value


def parse_profile_update(data: Mapping[str, Any]) -> dict[str, Any]:
    try:
        update = ProfileUpdate.model_validate(_normalize_keys(data))
    except PydanticValidationError as exc:
        errors = _format_errors(exc)
        raise ValidationError("; ".join(errors), errors=errors) from exc
    return update.model_dump(exclude_unset=True)


class DateRange(BaseModel):
    start: date = Field(description="Start date in YYYY-MM-DD format, e.g. 2026-01-31.")
    end: date = Field(description="End date in YYYY-MM-DD format, e.g. 2026-01-31.")

    @field_validator("start", "end", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        return parse_input_date(value)

    @model_validator(mode="after")
    def validate_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("date_range.start must be <= date_range.end")
        return self


class ToolContext(BaseModel):
    user_id: str
    monthly_goal: float = 0.0
    today: date = Field(default_factory=date.today)


class ToolRequest(BaseModel):
    request_id: str
    tool: str
    args: Dict[str, Any] = Field(default_factory=dict)
    context: ToolContext


class ToolResponse(BaseModel):
    request_id: str
    tool: str
    ok: bool = True
    result: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    context: ToolContext

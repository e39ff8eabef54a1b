"""
Altegio Onboarding — Batch Item Schemas

One pydantic model per entity type. Rows arriving from CSV are all
strings: blanks become None and numeric fields are coerced. A whole
batch is validated up front and rejected before any remote call if a
single row is invalid.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Annotated, Any, Generic, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from onboarding.errors import FieldError


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class BatchItem(BaseModel):
    """Common parsing rules for every batch row."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @abstractmethod
    def label(self) -> str:
        """Short human label used in failure reports."""


def _number_to_str(v: Any) -> Any:
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


# JSON payloads may carry phone numbers and external ids as numbers
OptStr = Annotated[Optional[str], BeforeValidator(_number_to_str)]


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class CategoryItem(BatchItem):
    """A service category."""
    title: str = Field(min_length=1, description="Category title")
    api_id: OptStr = Field(default=None, description="External identifier")
    weight: Optional[int] = Field(default=None, description="Sort order weight")

    def label(self) -> str:
        return self.title

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

class StaffItem(BatchItem):
    """A staff member."""
    name: str = Field(min_length=1)
    specialization: Optional[str] = None
    phone: OptStr = None
    email: Optional[EmailStr] = None
    position_id: Optional[int] = None
    api_id: OptStr = None

    def label(self) -> str:
        return self.name

    def to_payload(self) -> dict[str, Any]:
        """Body for POST /company/{id}/staff/quick."""
        return {
            "name": self.name,
            "specialization": self.specialization or "",
            "position_id": self.position_id,
            "phone_number": self.phone,
            "user_email": self.email or "",
            "user_phone": self.phone or "",
            "is_user_invite": False,
        }


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

class ServiceItem(BatchItem):
    """A bookable service. duration is in seconds."""
    title: str = Field(min_length=1)
    price_min: float = Field(ge=0)
    price_max: Optional[float] = Field(default=None, ge=0)
    duration: int = Field(gt=0)
    category_id: Optional[int] = None
    api_id: OptStr = None

    @model_validator(mode="after")
    def check_price_range(self) -> ServiceItem:
        if self.price_max is not None and self.price_max < self.price_min:
            raise ValueError("price_max must not be lower than price_min")
        return self

    def label(self) -> str:
        return self.title

    def to_payload(self, default_category_id: int | None = None) -> dict[str, Any]:
        """
        Body for POST /services/{id}. Rows without a category_id fall
        back to default_category_id (first category of the session).
        """
        payload: dict[str, Any] = {
            "title": self.title,
            "price_min": self.price_min,
            "price_max": self.price_max if self.price_max is not None else self.price_min,
            "duration": self.duration,
        }
        category_id = self.category_id if self.category_id is not None else default_category_id
        if category_id is not None:
            payload["category_id"] = category_id
        if self.api_id:
            payload["api_id"] = self.api_id
        return payload


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

class ClientItem(BatchItem):
    """A client record. Needs a phone or an email."""
    name: str = Field(min_length=1)
    phone: OptStr = None
    email: Optional[EmailStr] = None
    surname: Optional[str] = None
    comment: Optional[str] = None

    @model_validator(mode="after")
    def require_phone_or_email(self) -> ClientItem:
        if not self.phone and not self.email:
            raise ValueError("Either phone or email is required")
        return self

    def label(self) -> str:
        return f"{self.name} {self.surname}" if self.surname else self.name

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


SCHEMA_REGISTRY: dict[str, type[BatchItem]] = {
    "categories": CategoryItem,
    "staff": StaffItem,
    "services": ServiceItem,
    "clients": ClientItem,
}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

M = TypeVar("M", bound=BatchItem)


@dataclass
class ValidationResult(Generic[M]):
    """Either every row parsed (ok, items) or field errors to report."""
    items: list[M] = field(default_factory=list)
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _field_errors(row: int, exc: PydanticValidationError) -> list[FieldError]:
    out = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        out.append(FieldError(row=row, field=loc, message=msg))
    return out


def validate_rows(model: type[M], rows: list[dict[str, Any]]) -> ValidationResult[M]:
    """Validate every row; collect all errors rather than stopping at the first."""
    result: ValidationResult[M] = ValidationResult()
    for i, row in enumerate(rows, start=1):
        try:
            result.items.append(model.model_validate(row))
        except PydanticValidationError as e:
            result.errors.extend(_field_errors(i, e))
    if result.errors:
        result.items = []
    return result

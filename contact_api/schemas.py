from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from .models.enums import ServiceType


class ContactForm(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    phone: str = ""
    service: ServiceType
    message: str = Field(..., min_length=10)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


def format_error(error: dict) -> str:
    field = ".".join(str(part) for part in error.get("loc", ())) or "body"
    return f'"{field}": {error["msg"]}'


def validate_contact(body: Any) -> Tuple[Optional[ContactForm], List[str]]:
    """Validate a submission, collecting every violation.

    Returns the parsed form and an empty list, or None and one message per
    offending field.
    """
    try:
        return ContactForm.model_validate(body), []
    except ValidationError as e:
        return None, [format_error(error) for error in e.errors()]

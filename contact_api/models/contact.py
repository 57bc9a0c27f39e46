from beanie import Document
from pydantic import ConfigDict, Field, EmailStr
from typing import Optional
from datetime import datetime, timezone

from .enums import ServiceType

COLLECTION_NAME = "contatos"


class Contact(Document):
    # Stored with the camelCase names the site has always written
    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: EmailStr
    phone: str = ""
    service: ServiceType
    message: str
    ip_address: Optional[str] = Field(default=None, alias="ipAddress")

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="updatedAt"
    )

    class Settings:
        name = COLLECTION_NAME

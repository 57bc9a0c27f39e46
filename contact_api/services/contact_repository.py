import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from ..db import ConnectionCache
from ..models.contact import Contact, COLLECTION_NAME
from ..schemas import ContactForm

logger = logging.getLogger(__name__)

# Stored field names, shared by both implementations
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"
IP_ADDRESS = "ipAddress"


class ContactStoreError(Exception):
    """Raised when an insert or query fails after a handle was obtained"""


def serialize_contact(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Map a stored record to the shape returned by the API"""
    return {
        "id": str(record.get("_id") or record.get("id")),
        "name": record.get("name"),
        "email": record.get("email"),
        "phone": record.get("phone", ""),
        "service": record.get("service"),
        "message": record.get("message"),
        "ipAddress": record.get(IP_ADDRESS),
        "createdAt": record.get(CREATED_AT),
        "updatedAt": record.get(UPDATED_AT),
    }


class ContactRepository(ABC):
    """Stores contact submissions; all records are read newest first"""

    def __init__(self, cache: ConnectionCache):
        self.cache = cache

    @abstractmethod
    async def insert(self, form: ContactForm, ip_address: Optional[str] = None) -> str:
        """Write one validated submission and return its id"""

    @abstractmethod
    async def list_all(self) -> List[Dict[str, Any]]:
        """Every stored submission, newest createdAt first"""


class BeanieContactRepository(ContactRepository):
    """Repository backed by the Contact Beanie document"""

    async def insert(self, form: ContactForm, ip_address: Optional[str] = None) -> str:
        await self.cache.get_connection()
        now = datetime.now(timezone.utc)
        try:
            contact = Contact(
                **form.model_dump(),
                ip_address=ip_address,
                created_at=now,
                updated_at=now,
            )
            await contact.insert()
        except Exception as e:
            logger.error(f"❌ Failed to save contact: {str(e)}", exc_info=True)
            raise ContactStoreError(str(e)) from e

        logger.info(f"✅ Contact saved: {form.email}")
        return str(contact.id)

    async def list_all(self) -> List[Dict[str, Any]]:
        await self.cache.get_connection()
        try:
            contacts = await Contact.find_all().sort([(CREATED_AT, -1)]).to_list()
        except Exception as e:
            logger.error(f"❌ Failed to list contacts: {str(e)}", exc_info=True)
            raise ContactStoreError(str(e)) from e

        return [serialize_contact(contact.model_dump(by_alias=True)) for contact in contacts]


class DriverContactRepository(ContactRepository):
    """Repository using plain collection calls on the driver"""

    async def _collection(self):
        database = await self.cache.get_connection()
        return database[COLLECTION_NAME]

    async def insert(self, form: ContactForm, ip_address: Optional[str] = None) -> str:
        collection = await self._collection()
        now = datetime.now(timezone.utc)
        document = {
            **form.model_dump(mode="json"),
            IP_ADDRESS: ip_address,
            CREATED_AT: now,
            UPDATED_AT: now,
        }
        try:
            result = await collection.insert_one(document)
        except Exception as e:
            logger.error(f"❌ Failed to save contact: {str(e)}", exc_info=True)
            raise ContactStoreError(str(e)) from e

        logger.info(f"✅ Contact saved: {form.email}")
        return str(result.inserted_id)

    async def list_all(self) -> List[Dict[str, Any]]:
        collection = await self._collection()
        try:
            documents = await collection.find().sort(CREATED_AT, -1).to_list(length=None)
        except Exception as e:
            logger.error(f"❌ Failed to list contacts: {str(e)}", exc_info=True)
            raise ContactStoreError(str(e)) from e

        return [serialize_contact(document) for document in documents]


REPOSITORIES = {
    "beanie": BeanieContactRepository,
    "driver": DriverContactRepository,
}


def build_repository(backend: str, cache: ConnectionCache) -> ContactRepository:
    return REPOSITORIES[backend](cache)

from .contact import Contact, COLLECTION_NAME
from .enums import ServiceType

__all__ = ["Contact", "COLLECTION_NAME", "ServiceType"]

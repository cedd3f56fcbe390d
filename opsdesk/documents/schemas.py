"""Document store request and response schemas.

Business records are free-form; only the fields the server relies on are
declared and anything else is stored as sent.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContactType(str, Enum):
    customer = "customer"
    supplier = "supplier"
    both = "both"


class _OpenDocument(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ProjectCreate(_OpenDocument):
    projectRefNo: str = Field(min_length=1)
    projectName: str = Field(min_length=1)
    clientName: str = ""


class QuotationCreate(_OpenDocument):
    projectRefNo: str = Field(min_length=1)


class PurchaseOrderCreate(_OpenDocument):
    poNumber: str = Field(min_length=1)
    projectRefNo: str = Field(min_length=1)
    projectId: str | None = None


class ContactCreate(BaseModel):
    name: str = Field(min_length=1)
    position: str = ""
    address: str = ""
    contactNumber: str = ""
    type: ContactType

    def document(self) -> dict[str, str]:
        """Fields stored in Firestore, trimmed."""
        return {
            "name": self.name.strip(),
            "position": self.position.strip(),
            "address": self.address.strip(),
            "contactNumber": self.contactNumber.strip(),
        }


class ContactCreated(BaseModel):
    type: ContactType
    ids: list[str]


class ProjectSummary(BaseModel):
    id: str
    projectRefNo: str
    projectName: str
    clientName: str = ""


class LinkedProject(BaseModel):
    project: ProjectSummary
    quotations: list[dict[str, Any]]
    purchaseOrders: list[dict[str, Any]]

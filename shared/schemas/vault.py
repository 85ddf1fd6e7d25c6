"""
Vault Schema
============

Identifiers a user stores in their vault for exposure monitoring.

Author: idwatch Team
Version: 1.0.0
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VaultDataType(str, Enum):
    """Kinds of personal identifiers a vault can hold."""
    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"
    FULL_NAME = "full_name"
    ALIAS = "alias"
    USERNAME = "username"
    DOB = "dob"
    SSN = "ssn"
    EMPLOYER = "employer"
    RELATIVE = "relative"
    PASSPORT = "passport"
    DRIVERS_LICENSE = "drivers_license"
    CREDIT_CARD = "credit_card"
    BANK_ACCOUNT = "bank_account"
    MEDICAL_ID = "medical_id"
    TAX_ID = "tax_id"
    OTHER = "other"


class Profile(BaseModel):
    """A monitored person, owned by one account."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: f"p-{uuid4().hex[:12]}")
    owner_id: str = Field(..., min_length=1, description="Account that owns the profile")
    name: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VaultIdentifier(BaseModel):
    """
    One protected identifier belonging to exactly one profile.

    data_type cannot change after creation; to re-type a value,
    delete it and add a new identifier.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: f"v-{uuid4().hex[:12]}")
    profile_id: str = Field(..., min_length=1, frozen=True)
    data_type: VaultDataType = Field(..., frozen=True)
    value: str = Field(..., min_length=1)
    label: Optional[str] = None
    monitoring_enabled: bool = True

    @field_validator("value")
    @classmethod
    def _value_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("value must not be blank")
        return value

    @property
    def search_value(self) -> str:
        """The value as handed to evidence sources (SSN reduced to last 4)."""
        if self.data_type == VaultDataType.SSN:
            return self.value[-4:]
        return self.value

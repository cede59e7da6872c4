from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator


class RegistrationData(BaseModel):
    """
    Registration payload for clients and commercials.

    Every field is optional at the schema level so that a missing required
    field is reported by the registration validation, naming the field,
    rather than by a generic schema error.
    """
    email: Optional[str] = None
    password: Optional[str] = None
    nom: Optional[str] = None
    prenom: Optional[str] = None
    telephone: Optional[str] = None
    civilite: Optional[str] = None
    date_naissance: Optional[date] = None
    lieu_naissance: Optional[str] = None
    adresse: Optional[str] = None
    pays: Optional[str] = None
    code_apporteur: Optional[str] = None

    @field_validator("email")
    @classmethod
    def strip_email(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""

    # Same normalisation as registration, so the stored email matches
    @field_validator("email")
    @classmethod
    def strip_email(cls, value: str) -> str:
        return value.strip()


class UserPublic(BaseModel):
    """What callers may see of an account - never the password hash"""
    id: int
    email: str
    nom: str
    prenom: str
    role: str
    code_apporteur: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserProfile(BaseModel):
    id: int
    email: str
    nom: str = ""
    prenom: str = ""
    civilite: str = ""
    date_naissance: Optional[date] = None
    lieu_naissance: str = ""
    telephone: str = ""
    adresse: str = ""
    pays: str = ""
    role: str
    code_apporteur: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("nom", "prenom", "civilite", "lieu_naissance", "telephone",
                     "adresse", "pays", mode="before")
    @classmethod
    def blank_when_missing(cls, value: Optional[str]) -> str:
        # Profile screens expect strings, not nulls
        return "" if value is None else value

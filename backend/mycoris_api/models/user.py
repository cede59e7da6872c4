from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Date
from mycoris_api.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Registered account: client, commercial or admin.

    The role is derived from the email when the account is created and is
    stored, not re-derived on read. Commercial accounts carry a
    code_apporteur.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Unique and indexed for fast lookups during login
    email = Column(String, unique=True, index=True, nullable=False)
    # bcrypt hash - never exposed in responses or tokens
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="client")
    nom = Column(String, nullable=False)
    prenom = Column(String, nullable=False)
    civilite = Column(String, nullable=True)
    date_naissance = Column(Date, nullable=True)
    lieu_naissance = Column(String, nullable=True)
    telephone = Column(String, nullable=False)
    adresse = Column(String, nullable=True)
    pays = Column(String, nullable=True)
    code_apporteur = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

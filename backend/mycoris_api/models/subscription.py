from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from mycoris_api.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(Base):
    """
    An insurance subscription owned by a single user.

    statut moves from "proposition" to "contrat"; souscriptiondata holds the
    free-form subscription details, including the uploaded document path.
    """
    __tablename__ = "subscriptions"
    # Two concurrent creations can never share a policy number for a product
    __table_args__ = (
        UniqueConstraint("produit_nom", "numero_police", name="uq_subscriptions_produit_police"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    numero_police = Column(String, nullable=False)
    produit_nom = Column(String, nullable=False)
    statut = Column(String, nullable=False, default="proposition", index=True)
    souscriptiondata = Column(JSON, nullable=False, default=dict)
    # Set in Python so ordering has sub-second resolution on every backend
    date_creation = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    date_validation = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", backref="subscriptions")

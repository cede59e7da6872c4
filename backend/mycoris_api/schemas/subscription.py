from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict

# Subscription details are an open map of string keys to JSON values
SubscriptionPayload = Dict[str, Any]


class SubscriptionCreate(BaseModel):
    """
    Body of a subscription submission.

    product_type selects the product; every other key is kept as-is in the
    subscription payload.
    """
    product_type: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    def payload(self) -> SubscriptionPayload:
        return dict(self.model_extra or {})


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class SubscriptionOut(BaseModel):
    id: int
    user_id: int
    numero_police: str
    produit_nom: str
    statut: str
    souscriptiondata: SubscriptionPayload
    date_creation: datetime
    date_validation: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from mycoris_api.core.config import settings
from mycoris_api.core.errors import (
    MissingFieldError,
    MissingFileError,
    NotFoundError,
    TransientInfrastructureError,
)
from mycoris_api.models.subscription import Subscription
from mycoris_api.schemas.subscription import SubscriptionPayload
from mycoris_api.services.policy_numbers import generate_policy_number

logger = logging.getLogger(__name__)

STATUS_PROPOSITION = "proposition"
STATUS_CONTRAT = "contrat"

# Reserved payload key holding the uploaded identity document
DOCUMENT_PATH_KEY = "piece_identite_path"

SUBSCRIPTION_NOT_FOUND_MESSAGE = "Souscription non trouvée"


class SubscriptionService:
    """
    Subscription lifecycle, always scoped to the owning user.

    A subscription that exists but belongs to someone else is reported
    exactly like one that does not exist.
    """

    def __init__(
        self,
        db: Session,
        number_factory: Callable[[str], str] = generate_policy_number,
        max_attempts: Optional[int] = None,
    ):
        self.db = db
        self.number_factory = number_factory
        self.max_attempts = max_attempts or settings.POLICY_NUMBER_MAX_ATTEMPTS

    def create(self, owner_id: int, product_type: str, payload: SubscriptionPayload) -> Subscription:
        """
        Insert a new proposition with a freshly generated policy number.

        A policy number already taken for this product makes the insert fail
        on the unique constraint; a new number is then generated, up to
        max_attempts times.
        """
        if product_type is None or not product_type.strip():
            raise MissingFieldError("product_type")

        details = dict(payload or {})
        # The document path is only ever set by an upload
        details.pop(DOCUMENT_PATH_KEY, None)

        for attempt in range(1, self.max_attempts + 1):
            numero_police = self.number_factory(product_type)
            subscription = Subscription(
                user_id=owner_id,
                numero_police=numero_police,
                produit_nom=product_type,
                statut=STATUS_PROPOSITION,
                souscriptiondata=details,
            )
            self.db.add(subscription)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                taken = self._policy_number_taken(product_type, numero_police)
                # End the read so the next insert starts a fresh transaction
                self.db.rollback()
                if not taken:
                    # Not a policy number collision - nothing a retry can fix
                    raise
                logger.warning(
                    f"Policy number {numero_police} already used for {product_type} "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                continue

            self.db.refresh(subscription)
            logger.info(
                f"Subscription {subscription.id} created for user {owner_id} "
                f"with policy number {numero_police}"
            )
            return subscription

        logger.error(f"Could not allocate a policy number for {product_type} "
                     f"after {self.max_attempts} attempts")
        raise TransientInfrastructureError(
            "Impossible de générer un numéro de police, veuillez réessayer")

    def update_status(self, owner_id: int, subscription_id: int, new_status: str) -> Subscription:
        if new_status is None or not new_status.strip():
            raise MissingFieldError("status")

        subscription = self.get_one(owner_id, subscription_id)
        previous = subscription.statut
        subscription.statut = new_status
        subscription.date_validation = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(subscription)

        logger.info(f"Subscription {subscription_id}: {previous} -> {new_status}")
        return subscription

    def attach_document(self, owner_id: int, subscription_id: int,
                        document_path: Optional[str]) -> Subscription:
        """Record the document path in the payload, leaving other keys and the status alone"""
        if not document_path:
            raise MissingFileError()

        subscription = self.get_one(owner_id, subscription_id)
        # Assign a new dict: in-place mutation of a JSON column is not tracked
        subscription.souscriptiondata = {
            **(subscription.souscriptiondata or {}),
            DOCUMENT_PATH_KEY: document_path,
        }
        self.db.commit()
        self.db.refresh(subscription)

        logger.info(f"Document attached to subscription {subscription_id}")
        return subscription

    def list_by_owner(self, owner_id: int, status: Optional[str] = None) -> List[Subscription]:
        """Owner's subscriptions, most recent first, optionally for one status"""
        query = self.db.query(Subscription).filter(Subscription.user_id == owner_id)
        if status is not None:
            query = query.filter(Subscription.statut == status)
        return query.order_by(
            Subscription.date_creation.desc(),
            Subscription.id.desc(),
        ).all()

    def get_one(self, owner_id: int, subscription_id: int) -> Subscription:
        subscription = self.db.query(Subscription).filter(
            Subscription.id == subscription_id,
            Subscription.user_id == owner_id,
        ).first()

        if subscription is None:
            raise NotFoundError(SUBSCRIPTION_NOT_FOUND_MESSAGE)

        return subscription

    def _policy_number_taken(self, product_type: str, numero_police: str) -> bool:
        return self.db.query(Subscription.id).filter(
            Subscription.produit_nom == product_type,
            Subscription.numero_police == numero_police,
        ).first() is not None

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from mycoris_api.api.dependencies import get_current_claims, get_storage, get_subscription_service
from mycoris_api.core.errors import MissingFileError
from mycoris_api.core.security import TokenClaims
from mycoris_api.models.subscription import Subscription
from mycoris_api.schemas.subscription import StatusUpdate, SubscriptionCreate, SubscriptionOut
from mycoris_api.services.subscription_service import (
    STATUS_CONTRAT,
    STATUS_PROPOSITION,
    SubscriptionService,
)
from mycoris_api.storage.local_storage import LocalStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def _listing(subscriptions: List[Subscription]) -> dict:
    return {
        "success": True,
        "data": [SubscriptionOut.model_validate(s) for s in subscriptions],
    }


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_subscription(
    body: SubscriptionCreate,
    claims: TokenClaims = Depends(get_current_claims),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Submit a subscription; every field besides product_type is stored as its details"""
    subscription = subscription_service.create(claims.id, body.product_type, body.payload())
    return {
        "success": True,
        "message": "Souscription créée avec succès",
        "data": SubscriptionOut.model_validate(subscription),
    }


@router.put("/{subscription_id}/status")
def update_subscription_status(
    subscription_id: int,
    body: StatusUpdate,
    claims: TokenClaims = Depends(get_current_claims),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = subscription_service.update_status(claims.id, subscription_id, body.status)
    return {
        "success": True,
        "message": "Statut mis à jour avec succès",
        "data": SubscriptionOut.model_validate(subscription),
    }


@router.post("/{subscription_id}/upload-document")
async def upload_document(
    subscription_id: int,
    document: Optional[UploadFile] = File(None),
    claims: TokenClaims = Depends(get_current_claims),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
    storage: LocalStorage = Depends(get_storage),
):
    """Upload the identity document of a subscription (multipart field `document`)"""
    if document is None:
        raise MissingFileError()

    # The handler stays async to read the upload; database calls go to the
    # threadpool so they don't block the event loop
    # Ownership first, so nothing is written for someone else's subscription
    await run_in_threadpool(subscription_service.get_one, claims.id, subscription_id)

    document_path = await storage.save_document(document, claims.id)
    try:
        subscription = await run_in_threadpool(
            subscription_service.attach_document, claims.id, subscription_id, document_path)
    except Exception:
        logger.warning(f"Removing {document_path}: could not attach it to subscription {subscription_id}")
        storage.delete(document_path)
        raise

    return {
        "success": True,
        "message": "Document téléchargé avec succès",
        "data": SubscriptionOut.model_validate(subscription),
    }


@router.get("/user/propositions")
def list_user_propositions(
    claims: TokenClaims = Depends(get_current_claims),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    return _listing(subscription_service.list_by_owner(claims.id, STATUS_PROPOSITION))


@router.get("/user/contrats")
def list_user_contracts(
    claims: TokenClaims = Depends(get_current_claims),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    return _listing(subscription_service.list_by_owner(claims.id, STATUS_CONTRAT))


@router.get("/user/subscriptions")
def list_user_subscriptions(
    claims: TokenClaims = Depends(get_current_claims),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    return _listing(subscription_service.list_by_owner(claims.id))


@router.get("/{subscription_id}")
def get_subscription(
    subscription_id: int,
    claims: TokenClaims = Depends(get_current_claims),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = subscription_service.get_one(claims.id, subscription_id)
    return {"success": True, "data": SubscriptionOut.model_validate(subscription)}

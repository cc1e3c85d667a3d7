"""Public Routes - subscribe / unsubscribe"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from letsrace.errors import AuthError, StoreError, ValidationError
from letsrace.subscription.manager import SubscriptionManager
from letsrace.web.dependencies import get_subscription_manager, json_body

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")

router = APIRouter()

UNSUBSCRIBED_MESSAGE = "You've been unsubscribed. You won't receive further emails."
INVALID_TOKEN_MESSAGE = (
    "We couldn't process your unsubscribe request. "
    "This might be because the link has expired."
)


def _response(status_code: int, success: bool, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": success, "message": message})


@router.post("/subscribe")
def subscribe(
    payload: dict = Depends(json_body),
    manager: SubscriptionManager = Depends(get_subscription_manager),
):
    # New signups and preference updates get the same answer
    try:
        subscriber = manager.subscribe(payload)
    except ValidationError as e:
        return _response(400, False, " ".join(e.errors))
    except StoreError as e:
        logger.error(f"Subscribe failed: {e}")
        return _response(500, False, "We could not process your subscription. Please try again later.")

    return _response(
        200,
        True,
        f"Thanks! Your subscription is confirmed. You'll receive emails on {subscriber.send_day}s.",
    )


@router.post("/unsubscribe")
def unsubscribe(
    payload: dict = Depends(json_body),
    manager: SubscriptionManager = Depends(get_subscription_manager),
):
    token = payload.get("token")
    if not token or not isinstance(token, str):
        return _response(400, False, "Unsubscribe token is required.")

    try:
        changed = manager.unsubscribe(token)
    except AuthError as e:
        security_logger.warning("Unsubscribe token rejected: %s", e)
        return _response(401, False, INVALID_TOKEN_MESSAGE)
    except Exception as e:
        # Never reveal store problems or whether the address exists
        logger.exception(f"Unsubscribe failed: {e}")
        return _response(200, True, UNSUBSCRIBED_MESSAGE)

    if not changed:
        logger.info("Unsubscribe token valid but subscriber not found")
    return _response(200, True, UNSUBSCRIBED_MESSAGE)

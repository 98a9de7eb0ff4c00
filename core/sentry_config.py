import logging

import sentry_sdk
from fastapi import Request

from config import Settings

logger = logging.getLogger(__name__)


def init_sentry(settings: Settings) -> bool:
    """
    Initialize Sentry when a DSN is configured. Returns whether it is active.
    """
    if not settings.sentry_dsn:
        logger.debug("SENTRY_DSN not set; error reporting disabled")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        traces_sample_rate=0.2,
        environment=settings.api_env,
        send_default_pii=False,
    )
    logger.info("Sentry initialised", extra={"environment": settings.api_env})
    return True


async def sentry_alert_hook(request: Request, exc: Exception) -> None:
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("path", request.url.path)
        scope.set_tag("request_id", getattr(request.state, "request_id", "-"))
        sentry_sdk.capture_exception(exc)

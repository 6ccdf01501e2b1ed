import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger("appbuilder.notify")

DEFAULT_MAX_ATTEMPTS = 5

async def notify_with_backoff(
    evaluation_url: str,
    payload: Dict[str, Any],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    *,
    timeout: float = 20.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep=asyncio.sleep,
) -> bool:
    """
    POST ``payload`` as JSON to ``evaluation_url`` until a 2xx answer arrives.

    Attempt ``i`` (0-based) that fails is followed by a ``2 ** i`` second wait,
    so five attempts sleep 1, 2, 4, 8 and 16 seconds. Returns True once
    delivered and False when every attempt failed. Never raises.
    """
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        for attempt in range(max_attempts):
            try:
                logger.info("POST %s attempt %d/%d keys=%s", evaluation_url, attempt + 1, max_attempts, list(payload))
                r = await client.post(evaluation_url, json=payload)
                logger.info("response: status=%s len=%d", r.status_code, len(r.content))
                if r.is_success:
                    logger.info("evaluator notified at %s", evaluation_url)
                    return True
            except Exception as e:
                logger.warning("attempt %d failed: %s", attempt + 1, e)

            delay = 2 ** attempt
            logger.info("sleep %ss before retry", delay)
            await sleep(delay)

    logger.error("NotificationExhausted: giving up on %s after %d attempts", evaluation_url, max_attempts)
    return False

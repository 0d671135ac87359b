import logging
import time

import certifi
import requests

from nonce_validator.errors import FetchError
from nonce_validator.models.schemas import ValidationTarget

logger = logging.getLogger(__name__)

DEFAULT_ROUTER_BASE_URL = "https://su-router.ao-testnet.xyz"
DEFAULT_TIMEOUT_SECONDS = 10.0


def build_slot_url(target: ValidationTarget) -> str:
    return f"https://{target.target}/{target.process_id}~process@1.0/compute/at-slot"


def build_router_url(
    target: ValidationTarget,
    base_url: str = DEFAULT_ROUTER_BASE_URL,
) -> str:
    return f"{base_url.rstrip('/')}/{target.process_id}/latest"


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Delay before retrying after the given (1-based) failed attempt."""
    return base_delay * (2 ** (attempt - 1))


def fetch_with_retry(
    url: str,
    max_attempts: int,
    base_delay: float,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> requests.Response:
    """GET ``url`` until it answers 200 or the attempts run out.

    Every non-200 status and every transport failure is retried, 4xx
    included. Raises ``FetchError`` with the last failure once
    ``max_attempts`` have been used.
    """
    attempts = max(max_attempts, 1)
    last_error = ""
    for attempt in range(1, attempts + 1):
        try:
            response = requests.get(
                url,
                timeout=timeout,
                allow_redirects=True,
                verify=certifi.where(),
            )
        except requests.RequestException as exc:
            last_error = str(exc).strip() or exc.__class__.__name__
        else:
            if response.status_code == 200:
                return response
            last_error = f"HTTP {response.status_code}"

        if attempt < attempts:
            delay = backoff_delay(base_delay, attempt)
            logger.info(
                "GET %s failed (%s), attempt %d/%d, retrying in %.1fs",
                url,
                last_error,
                attempt,
                attempts,
                delay,
            )
            time.sleep(delay)

    logger.warning("GET %s failed after %d attempts: %s", url, attempts, last_error)
    raise FetchError(url, attempts, last_error)

# storefront/utils/retry.py
import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type


def http_retry():
    # only transport failures, an HTTP error response is final
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    )

# src/driftwatch/util/retry.py: Decorators for retrying operations.
# This module provides a decorator implementing exponential backoff with
# jitter. It is applied to status writes against the Kubernetes API, where
# optimistic-concurrency conflicts are expected and short-lived. Remote
# reference listing is deliberately not retried: the next poll retries it.

import time
import random
import logging
from functools import wraps

logger = logging.getLogger(__name__)

def retry_with_backoff(retries=3, backoff_in_seconds=1, exceptions=(Exception,), should_retry=None):
    """
    Retry the wrapped callable on the given exception types.

    should_retry, when given, is called with the caught exception and can veto
    the retry (e.g. only retry HTTP 409 conflicts).
    """
    def rwb(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return f(*args, **kwargs)
                except exceptions as e:
                    if attempt >= retries or (should_retry and not should_retry(e)):
                        raise
                    sleep = backoff_in_seconds * 2 ** attempt + random.uniform(0, 1)
                    logger.warning(
                        f"{f.__name__} failed ({e}); retry {attempt + 1}/{retries} in {sleep:.2f}s"
                    )
                    time.sleep(sleep)
                    attempt += 1
        return wrapper
    return rwb

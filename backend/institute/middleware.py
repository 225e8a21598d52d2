import logging
import time

from django.conf import settings

from enrollment.services import locking

logger = logging.getLogger('django.request')


def _caller(request) -> str:
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return user.username
    return 'anonymous'


class SlowRequestLoggingMiddleware:
    """Report requests that were slow or fought over batch seats.

    Requests slower than `SLOW_REQUEST_LOG_MS` are logged as warnings with
    the number of allocation conflict retries they took, since retry
    backoff is the usual cause. Fast requests that still retried are logged
    at info level so lock contention on a batch is visible before it turns
    into latency. The retry count is also returned in `X-Allocation-Retries`.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.threshold_ms = int(getattr(settings, 'SLOW_REQUEST_LOG_MS', 1200))

    def __call__(self, request):
        locking.reset_retry_count()
        started = time.perf_counter()
        response = self.get_response(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        retries = locking.retry_count()

        if retries:
            response['X-Allocation-Retries'] = str(retries)

        if self.threshold_ms > 0 and elapsed_ms >= self.threshold_ms:
            logger.warning(
                'Slow request: %s %s status=%s duration_ms=%.2f allocation_retries=%d user=%s',
                request.method, request.path, getattr(response, 'status_code', 'NA'),
                elapsed_ms, retries, _caller(request),
            )
        elif retries:
            logger.info(
                'Allocation contention: %s %s status=%s allocation_retries=%d duration_ms=%.2f',
                request.method, request.path, getattr(response, 'status_code', 'NA'), retries, elapsed_ms,
            )
        return response

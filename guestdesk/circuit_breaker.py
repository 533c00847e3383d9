from pybreaker import CircuitBreaker
from sqlalchemy.exc import IntegrityError

from .config import settings

# Guards the inserts on the registration and order paths. Constraint
# violations are expected outcomes there and do not trip the breaker.
db_write_breaker = CircuitBreaker(
    fail_max=settings.breaker_fail_max,
    reset_timeout=settings.breaker_reset_timeout,
    exclude=[IntegrityError],
    name="db_write_breaker",
)

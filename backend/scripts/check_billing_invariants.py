"""Check the normalized Pay billing tables for invariant violations.

Exits non-zero when any violation is found. Uses APP_DATABASE_DSN.
"""

import logging
import sys

from paymigrate.core.config import settings
from paymigrate.core.database import SessionLocal
from paymigrate.services.billing_invariants import BillingInvariantChecker

logger = logging.getLogger("check_billing_invariants")


def main() -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    db = SessionLocal()
    try:
        violations = BillingInvariantChecker(db).check()
    finally:
        db.close()

    if violations:
        logger.error("%d billing invariant violations found", len(violations))
        return 1
    logger.info("All billing invariants hold")
    return 0


if __name__ == "__main__":
    sys.exit(main())

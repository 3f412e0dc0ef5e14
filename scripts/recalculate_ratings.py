from __future__ import annotations

import logging
import sys

from turismo.core.config import settings
from turismo.core.errors import RatingError
from turismo.core.logging_config import configure_logging
from turismo.db.session import SessionLocal
from turismo.services.ratings import recalculate_all, recompute_aggregate

logger = logging.getLogger(__name__)


def main() -> int:
    """Rebuild cached place ratings: all places, or the ids given as arguments."""
    configure_logging(log_dir=settings.log_dir, level=settings.log_level)

    db = SessionLocal()
    try:
        if len(sys.argv) == 1:
            count = recalculate_all(db)
            print(f"Recalculated {count} places")
            return 0

        for place_id in sys.argv[1:]:
            aggregate = recompute_aggregate(db, place_id=place_id)
            db.commit()
            print(f"{place_id}: {aggregate.average_rating} ({aggregate.total_ratings} ratings)")
        return 0
    except RatingError as e:
        db.rollback()
        logger.error("Recalculation failed: %s", e)
        print(f"Error: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())

"""Example usage of CommuteBoard: print the next departures for a route."""

import logging
import sys
from pathlib import Path

# Add src to path so we can import pendlarn
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pendlarn.board import ROUTES, CommuteBoard
from pendlarn.config import load_settings
from pendlarn.exceptions import PendlarnError
from pendlarn.trafikverket_client import TrafikverketClient

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def print_departures(slug: str):
    """
    Fetch and display departures for a route.

    Args:
        slug: Route slug (e.g., "uppsala" or "stockholm")
    """
    settings = load_settings()
    client = TrafikverketClient(
        settings.trafikverket_api_key,
        url=settings.trafikverket_url,
        timeout=settings.request_timeout,
    )
    board = CommuteBoard(client, timezone=settings.tzinfo())

    try:
        route, rows = board.departures(slug)
    except PendlarnError as e:
        logger.error(f"Failed to fetch departures ({type(e).__name__}): {e}")
        sys.exit(1)

    print(f"\n{'='*70}")
    print(f"Departures from {route.name}")
    print(f"{'='*70}\n")

    if not rows:
        print("  No departures found")
    for row in rows:
        print(f"{row.time}  track {row.track or '-':>3}  {row.operator:<12} {row.train_ident}")
        for text in row.deviations:
            print(f"    ! {text}")
        for text in row.notices:
            print(f"      {text}")
    print()


if __name__ == "__main__":
    slug = sys.argv[1] if len(sys.argv) > 1 else "uppsala"
    if slug not in ROUTES:
        print(f"Unknown route '{slug}'. Choose one of: {', '.join(ROUTES)}")
        sys.exit(1)
    print_departures(slug)

"""Main entry point: log in, fetch one window of reservations and print the dashboard as JSON."""

import argparse
import asyncio
import json
import sys
from datetime import date
from typing import Optional

from avirato_dashboard.clients import AviratoAPIClientError
from avirato_dashboard.config import configure_logging, get_logger, settings
from avirato_dashboard.models.avirato import Credentials
from avirato_dashboard.services import ReservationDashboardService

logger = get_logger(__name__)


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch enriched Avirato reservations")
    parser.add_argument("--start", type=date.fromisoformat, help="Window start (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, help="Window end (YYYY-MM-DD)")
    parser.add_argument("--search", default="", help="Filter by client name or reservation id")
    parser.add_argument("--no-billing", action="store_true", help="Skip per-reservation billing lookups")
    return parser.parse_args(argv)


async def main(argv: Optional[list[str]] = None) -> int:
    """Main async function.

    Uses the persisted session when it is still valid, otherwise logs in with
    AVIRATO_EMAIL / AVIRATO_PASSWORD.
    """
    args = _parse_args(argv)
    logger.info("Starting Avirato dashboard fetch", environment=settings.environment)

    service = ReservationDashboardService(include_billing=not args.no_billing)

    try:
        if not await service.is_authenticated():
            missing = settings.validate_credentials()
            if missing:
                logger.error("Credentials missing", missing=missing)
                print(json.dumps({"success": False, "error": f"Missing: {', '.join(missing)}"}))
                return 1
            await service.login(
                Credentials(email=settings.avirato.email, password=settings.avirato.password)
            )

        result = await service.fetch_reservations(args.start, args.end)
        rows = service.search(result.rows, args.search)

        output = {
            "success": True,
            "site_code": result.site_code,
            "selected_window": result.selected_window.model_dump(mode="json"),
            "search_window": result.search_window.model_dump(mode="json"),
            "summary": result.summary.model_dump(mode="json", by_alias=True),
            "warnings": result.warnings,
            "errors": result.errors,
            "reservations": [row.model_dump(mode="json", by_alias=True) for row in rows],
        }
        print(json.dumps(output, indent=2, ensure_ascii=False, default=str))
        return 0

    except AviratoAPIClientError as e:
        logger.error("Reservation fetch failed", error=str(e), error_type=type(e).__name__)
        print(json.dumps({"success": False, "error": e.user_message, "detail": str(e)}, ensure_ascii=False))
        return 1
    except Exception as e:
        logger.error(
            "Fatal error in main application",
            error=str(e),
            exc_info=True,
        )
        return 1


def run_sync() -> int:
    """Run the async main function synchronously.

    Returns:
        Exit code from main()
    """
    configure_logging()
    return asyncio.run(main())


if __name__ == "__main__":
    sys.exit(run_sync())

import argparse
import logging
import time

from taxi_pricing.config import settings
from taxi_pricing.dependencies import build_services
from taxi_pricing.logging_setup import setup_logging

logger = logging.getLogger("taxi_pricing.worker")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Re-price featured trips against the latest tariff.")
    parser.add_argument("--once", action="store_true", help="run a single refresh and exit")
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.REFRESH_INTERVAL_SEC,
        help="seconds between refreshes (default: %(default)s)",
    )
    args = parser.parse_args(argv)

    setup_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON, environment=settings.APP_ENV)
    refresher = build_services(settings).refresher

    while True:
        report = refresher.refresh()
        logger.info("[worker] refreshed: %s", report.as_dict())
        if args.once:
            return 1 if report.failed else 0
        time.sleep(args.interval)


if __name__ == "__main__":
    raise SystemExit(main())

import argparse
import asyncio
import logging
import sys

from production_tracker.config import load_config
from production_tracker.service import TrackerService

logger = logging.getLogger("TrackerMain")


async def run_tracker(config) -> None:
    service = TrackerService(config)
    await service.start()
    try:
        # Runs until cancelled (Ctrl+C)
        await asyncio.Event().wait()
    finally:
        await service.stop()


def main():
    # Parse Arguments
    parser = argparse.ArgumentParser(description="Production Batch Tracker")
    parser.add_argument("--config", default=None, help="Path to settings.json")
    parser.add_argument("--api-url", default=None, help="Production backend base URL")
    parser.add_argument("--notifier", choices=["log", "mqtt"], default=None, help="Select notification sink")
    parser.add_argument("--cycle", type=int, default=None, help="Cycle duration per unit (seconds)")
    args, unknown = parser.parse_known_args()

    logging.basicConfig(level=logging.INFO, format='[TRACKER] %(asctime)s | %(levelname)s | %(message)s',
                        datefmt='%H:%M:%S')

    # 1. Configuration
    config = load_config(args.config)
    if args.api_url:
        config["api_url"] = args.api_url
    if args.notifier:
        config["notifier"] = args.notifier
    if args.cycle:
        config["cycle_duration_seconds"] = args.cycle

    logger.info(f">>> Initializing Tracker using {config['notifier'].upper()} notifier...")

    # 2. Start
    try:
        asyncio.run(run_tracker(config))
    except KeyboardInterrupt:
        logger.info("Tracker Shutdown.")
    except Exception:
        logger.critical("Fatal tracker error", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

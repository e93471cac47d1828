import argparse
import logging
import signal
import sys
import time

import schedule

from coverglow import config
from coverglow.auth import SpotifySession
from coverglow.errors import AuthorizationDenied, ConfigError
from coverglow.publisher import DisplayManager
from coverglow.tracker import poll_once

logger = logging.getLogger(__name__)


class Poller:
    """Carries the last seen track id from one polling cycle to the next."""

    def __init__(self, session, manager, cache_dir):
        self.session = session
        self.manager = manager
        self.cache_dir = cache_dir
        self.last_track_id = None

    def cycle(self):
        self.last_track_id = poll_once(self.session, self.manager, self.last_track_id, self.cache_dir)
        return self.last_track_id


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Spotify album art display")
    parser.add_argument("--auth-only", action="store_true",
                        help="Authenticate with Spotify, save the tokens and exit")
    parser.add_argument("--interval", "-i", type=int, default=None,
                        help=f"Seconds between polls (default {config.POLL_INTERVAL})")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


def run(poller, interval):
    scheduler = schedule.Scheduler()
    logger.info("Starting Spotify album art display...")
    logger.info(f"Polling every {interval} seconds for new tracks...")
    logger.info("Press Ctrl+C to stop.")

    poller.cycle()
    # the next run is scheduled only once the job returns, so polls never overlap
    scheduler.every(interval).seconds.do(poller.cycle)
    try:
        while True:
            scheduler.run_pending()
            time.sleep(0.5)
    finally:
        scheduler.clear()


def main(argv=None):
    args = parse_args(argv)
    config.setup_logging(args.debug)
    signal.signal(signal.SIGINT, signal.default_int_handler)
    signal.signal(signal.SIGTERM, signal.default_int_handler)

    try:
        cfg = config.load_config()
    except ConfigError as e:
        logger.error(f"Error: {e}")
        return 1

    cache_dir = config.cache_dir()
    cache_dir.mkdir(parents=True, exist_ok=True)
    manager = DisplayManager(config.update_path())

    try:
        session = SpotifySession(cfg, config.token_path()).start()
        if args.auth_only:
            logger.info(f"Tokens saved to {config.token_path()}")
            return 0
        run(Poller(session, manager, cache_dir), args.interval or config.poll_interval())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        manager.shutdown()
        return 0
    except AuthorizationDenied as e:
        logger.error(f"{e}. Not retrying; run again to re-authorize.")
        manager.shutdown()
        return 1
    except Exception:
        logger.exception("Uncaught exception")
        manager.shutdown()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

import time
import logging
import signal
import argparse

from core.app_context import AppContext
from core.config_loader import load_config
from database.database import create_db_engine, create_session_factory
from database.init_db import init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Global flag for graceful shutdown
running = True


def signal_handler(sig, frame):
    global running
    logger.info("Shutdown signal received")
    running = False


def run_reminder_cycle(ctx: AppContext) -> None:
    """Run one interview reminder sweep."""
    step_start = time.time()
    result = ctx.reminder_scheduler.run_sweep()
    logger.info(
        f"Reminder sweep: {result.applications_processed} stale applications, "
        f"{result.reminders_sent} emails sent, {result.reminders_created} reminders recorded "
        f"in {time.time() - step_start:.2f}s"
    )


def main():
    parser = argparse.ArgumentParser(description="TalentScout Reminder Scheduler")
    parser.add_argument('--once', action='store_true',
                        help='Run a single reminder sweep and exit')
    parser.add_argument('--config', type=str, default='config.yaml',
                        help='Path to config.yaml')
    args = parser.parse_args()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    config = load_config(args.config)
    engine = create_db_engine(config.database.url)

    # Initialize DB (with retry logic)
    init_db(bind=engine)

    ctx = AppContext.build(config, session_factory=create_session_factory(engine))
    interval = config.schedule.interval_seconds

    if args.once:
        run_reminder_cycle(ctx)
        return

    logger.info(f"Reminder scheduler starting, sweeping every {interval} seconds")
    cycle_count = 0
    while running:
        cycle_count += 1
        cycle_start = time.time()
        logger.info(f"=== Starting Cycle #{cycle_count} ===")
        try:
            run_reminder_cycle(ctx)
        except Exception as e:
            logger.error(f"Error in main loop: {e}", exc_info=True)

        cycle_elapsed = time.time() - cycle_start
        if running:
            logger.info(f"=== Cycle #{cycle_count} completed in {cycle_elapsed:.2f}s. Sleeping for {interval} seconds... ===")
            # Sleep in chunks to allow responsive shutdown
            for _ in range(max(1, interval // 5)):
                if not running:
                    break
                time.sleep(5)


if __name__ == "__main__":
    main()

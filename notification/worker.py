#!/usr/bin/env python3
"""
RQ Worker for the notification queue.

Processes notifications queued by NotificationService when
notifications.use_async_queue is enabled.

Usage:
    python -m notification.worker
    python -m notification.worker --burst
    python -m notification.worker --verbose
"""

import sys
import argparse
import logging

from redis import Redis
from redis.exceptions import RedisError
from rq import Worker

from core.config_loader import load_config
from notification.service import QUEUE_NAME

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def start_worker(burst: bool = False, queues: list = None, redis_url: str = None):
    """Start the RQ worker."""
    if redis_url is None:
        redis_url = load_config().notifications.redis_url or 'redis://localhost:6379/0'

    if queues is None:
        queues = [QUEUE_NAME]

    logger.info("Starting RQ Worker")
    logger.info(f"Queues: {', '.join(queues)}")
    logger.info(f"Burst mode: {burst}")

    try:
        redis_conn = Redis.from_url(redis_url)
        redis_conn.ping()
        logger.info("Connected to Redis")

        worker = Worker(queues, connection=redis_conn)

        if burst:
            logger.info("Running in burst mode...")
            worker.work(burst=True)
        else:
            logger.info("Worker started. Press Ctrl+C to stop.")
            worker.work()

    except KeyboardInterrupt:
        logger.info("Worker stopped")
    except RedisError as e:
        logger.error(f"Redis error: {e}")
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(description='Notification Worker')
    parser.add_argument('--burst', action='store_true', help='Process all and exit')
    parser.add_argument('--queues', nargs='+', default=[QUEUE_NAME])
    parser.add_argument('--redis-url', default=None)
    parser.add_argument('--verbose', action='store_true')

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    start_worker(burst=args.burst, queues=args.queues, redis_url=args.redis_url)


if __name__ == '__main__':
    main()

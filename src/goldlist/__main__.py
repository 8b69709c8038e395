"""Main entry point: run the review reminder service."""
import asyncio
import logging
import signal

from goldlist.app import GoldlistApp
from goldlist.logging_config import setup_logging

logger = logging.getLogger("goldlist")


async def shutdown(sig, loop):
    """Cleanup tasks tied to the service's shutdown."""
    logger.info("Received exit signal %s...", sig.name)

    tasks = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
    for task in tasks:
        task.cancel()

    logger.info("Cancelling %d outstanding tasks", len(tasks))
    await asyncio.gather(*tasks, return_exceptions=True)


def handle_exception(loop, context):
    """Handle exceptions in the event loop."""
    msg = context.get("exception", context["message"])
    logger.error("Caught exception: %s", msg)
    logger.info("Shutting down...")
    loop.stop()


async def main() -> None:
    """Run the reminder service until interrupted."""
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda s=sig: asyncio.create_task(shutdown(s, loop)))

    loop.set_exception_handler(handle_exception)

    app = GoldlistApp()
    try:
        logger.info("Starting Goldlist...")
        await app.start()

        while True:
            try:
                await asyncio.sleep(1)
            except asyncio.CancelledError:
                break
    finally:
        logger.info("Cleaning up...")
        await app.stop()


if __name__ == "__main__":
    setup_logging("Starting Goldlist reminder service ...")

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        loop.run_until_complete(main())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        loop.close()

import asyncio
import signal
from typing import Any

from loguru import logger

from sqs_consumer.app.composition import create_consumer_dependencies
from sqs_consumer.app.config.settings import Settings
from sqs_consumer.app.constants import SERVICE_NAME
from sqs_consumer.app.core.logging import configure_logging


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def run_consumer(settings: Settings | None = None) -> None:
    settings = settings or Settings()
    configure_logging(settings.log_level, serialize=settings.log_serialize)

    deps = create_consumer_dependencies(settings)
    await deps.connect()
    consumer = deps.consumer

    def request_shutdown() -> None:
        _log("shutdown_signal")
        consumer.stop_consuming()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown)
        except NotImplementedError:
            pass

    _log("consumer_process_started", queue_url=settings.queue_url)
    try:
        await consumer.start_consuming()
    finally:
        await deps.close()
        _log("consumer_process_stopped")


def main() -> None:
    try:
        asyncio.run(run_consumer())
    except KeyboardInterrupt:
        _log("consumer_interrupted")
    except Exception as e:
        logger.exception("consumer failed: {}", e)
        raise


if __name__ == "__main__":
    main()

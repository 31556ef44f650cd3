"""Host runner: subscribe, wait for the expected messages, unsubscribe."""
import asyncio
import signal
from typing import Any

from loguru import logger

from subscriber.app.composition import SubscriberDependencies, create_subscriber_dependencies
from subscriber.app.config.settings import Settings
from subscriber.app.constants import ON_MESSAGE_RECEIVED
from subscriber.app.core import SERVICE_NAME


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _on_message_received(arguments: dict[str, Any]) -> None:
    info = arguments.get("deliveryInfo", {})
    _log(
        "hook_message_received",
        routing_key=info.get("routingKey"),
        exchange=info.get("exchange"),
        payload=repr(arguments.get("payload")),
    )


async def receive_messages(
    deps: SubscriberDependencies,
    shutdown: asyncio.Event,
) -> int:
    """Receive until expected_messages arrived or shutdown is set; returns the count received."""
    settings = deps.settings
    received = 0
    while not shutdown.is_set():
        if settings.expected_messages and received >= settings.expected_messages:
            break
        arrival = deps.subscription.receive_message()
        stop = asyncio.ensure_future(shutdown.wait())
        try:
            done, _ = await asyncio.wait(
                {arrival, stop},
                timeout=settings.receive_timeout_seconds,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            stop.cancel()
            try:
                await stop
            except asyncio.CancelledError:
                pass
        if arrival in done:
            arrival.result()
            received += 1
            continue
        arrival.cancel()
        if not done:
            _log("receive_timeout", received=received, timeout=settings.receive_timeout_seconds)
            raise asyncio.TimeoutError(
                f"no message within {settings.receive_timeout_seconds}s on {deps.subscription.queue_name}"
            )
    return received


async def run_subscriber(settings: Settings | None = None) -> int:
    deps = create_subscriber_dependencies(settings)
    deps.hooks.on(ON_MESSAGE_RECEIVED, _on_message_received)
    shutdown = asyncio.Event()

    def request_shutdown() -> None:
        if not shutdown.is_set():
            _log("shutdown_signal")
            shutdown.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown)
        except NotImplementedError:
            pass

    try:
        await deps.connect()
        _log("subscriber_started", queue_name=deps.subscription.queue_name)
        received = await receive_messages(deps, shutdown)
        _log("subscriber_finished", received=received)
        return received
    finally:
        await deps.close()
        _log("subscriber_stopped")


def main() -> None:
    try:
        asyncio.run(run_subscriber())
    except KeyboardInterrupt:
        _log("subscriber_interrupted")
    except Exception as e:
        logger.exception("subscriber failed: {}", e)
        raise


if __name__ == "__main__":
    main()

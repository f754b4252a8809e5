import logging
import signal
import sys
import threading
from typing import Optional

from pyment.config import get_env_or, load
from pyment.errors import BindError, ShutdownError
from pyment.routes import ApiRoutes
from pyment.server import Server


STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)
POLL_INTERVAL = 0.2

logger = logging.getLogger("pyment")


def configure_logging() -> None:
    logging.basicConfig(
        level=get_env_or("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def wait_for_signal(signals=STOP_SIGNALS, until: Optional[threading.Event] = None) -> Optional[int]:
    """Block until one of ``signals`` arrives and return its number.

    If ``until`` is given and gets set first, return None instead. Previous
    handlers are restored before returning.
    """
    received = threading.Event()
    caught = []

    def handler(signum, frame):
        caught.append(signum)
        received.set()

    previous = {sig: signal.signal(sig, handler) for sig in signals}
    try:
        while not received.wait(POLL_INTERVAL):
            if until is not None and until.is_set():
                break
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)
    return caught[0] if caught else None


def main() -> int:
    configure_logging()
    config = load()
    server = Server(config, ApiRoutes(), logger=logger)

    try:
        server.start()
    except BindError:
        return 1

    signum = wait_for_signal(until=server.finished)
    if signum is None:
        logger.error("Server stopped serving before any signal")
    else:
        logger.info("Received %s", signal.Signals(signum).name)

    try:
        server.shutdown()
    except ShutdownError:
        return 1
    return 0 if signum is not None else 1


if __name__ == "__main__":
    sys.exit(main())

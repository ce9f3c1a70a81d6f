import logging
import sys


def setup_logging(level: str | int = logging.INFO) -> None:
    """Send all logs to stderr. Call once, before the server starts."""
    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)

    # Retry chatter from the HTTP adapter
    logging.getLogger("urllib3").setLevel(logging.WARNING)

# Roomchat package init
import logging
import os

# Modules log through getLogger(__name__), which lives under the import name
# of this package (``src.roomchat`` when run from a checkout).
LLM_LOGGER = f"{__name__}.llm"


def _level(env_name: str, default: str) -> int:
    name = (os.getenv(env_name) or default).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _configure_logging() -> None:
    level = _level("ROOMCHAT_LOG_LEVEL", "INFO")
    root = logging.getLogger(__name__)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[ROOMCHAT][%(levelname)s] %(name)s: %(message)s"))
        root.addHandler(handler)
        # api.main also calls basicConfig; keep each record printed once
        root.propagate = False
    root.setLevel(level)

    # Upstream relays and proxy calls; DEBUG here shows every relay without
    # turning on debug output for the whole room.
    logging.getLogger(LLM_LOGGER).setLevel(_level("ROOMCHAT_LLM_LOG_LEVEL", logging.getLevelName(level)))

    # The relay is single-attempt, so urllib3's per-connection chatter adds nothing
    if level > logging.DEBUG:
        logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)


_configure_logging()

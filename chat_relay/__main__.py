"""Allow ``python -m chat_relay``."""

from .main import run

run()

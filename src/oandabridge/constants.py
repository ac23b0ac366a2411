"""Core constants for the OANDA stream bridge."""

from enum import Enum


class OandaEnvironment(str, Enum):
    """Broker environment selection."""

    PRACTICE = "practice"
    LIVE = "live"


class SinkType(str, Enum):
    """Publish sink selection."""

    ZMQ = "zmq"
    LOG = "log"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ============================================
# Endpoints
# ============================================

STREAM_HOSTS = {
    OandaEnvironment.PRACTICE: "https://stream-fxpractice.oanda.com",
    OandaEnvironment.LIVE: "https://stream-fxtrade.oanda.com",
}

# Legacy names used by older OANDA tooling
ENVIRONMENT_ALIASES = {
    "fxpractice": OandaEnvironment.PRACTICE,
    "fxtrade": OandaEnvironment.LIVE,
}

PRICING_STREAM_PATH = "/v3/accounts/{account_id}/pricing/stream"

# ============================================
# Default Values
# ============================================

DEFAULT_ENVIRONMENT = OandaEnvironment.PRACTICE
DEFAULT_INSTRUMENTS = ("EUR_USD",)
DEFAULT_PUBLISH_ADDRESS = "tcp://127.0.0.1:5556"
DEFAULT_SEND_HWM = 1000
DEFAULT_CONNECT_TIMEOUT = 30.0

# ============================================
# Environment Variables
# ============================================

ENV_AUTH_TOKEN = "OANDA_AUTH_TOKEN"
ENV_ACCOUNT_ID = "OANDA_ACCOUNT_ID"
ENV_ENVIRONMENT = "OANDA_ENV_TYPE"
ENV_INSTRUMENTS = "OANDA_INSTRUMENTS"
ENV_PUBLISH_ADDRESS = "OANDA_PUBLISH_ADDRESS"
ENV_SINK = "OANDA_SINK"
ENV_LOG_LEVEL = "OANDA_LOG_LEVEL"

# ============================================
# Application Constants
# ============================================

APP_NAME = "oandabridge"
LINE_TERMINATOR = b"\n"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

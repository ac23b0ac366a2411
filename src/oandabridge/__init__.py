"""Bridge from the OANDA v20 pricing stream to a ZeroMQ fan-out socket."""

__version__ = "0.1.0"

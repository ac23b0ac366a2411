"""Fan-out sinks for parsed stream records."""

from oandabridge.constants import SinkType
from oandabridge.publish.base import PublishSink
from oandabridge.publish.log_sink import LogSink
from oandabridge.publish.zmq_sink import ZmqPublishSink


def create_sink(sink_type: SinkType, address: str, send_hwm: int) -> PublishSink:
    """Build the sink selected by configuration (not yet bound)."""
    if sink_type == SinkType.LOG:
        return LogSink()
    return ZmqPublishSink(address=address, send_hwm=send_hwm)


__all__ = ["LogSink", "PublishSink", "ZmqPublishSink", "create_sink"]

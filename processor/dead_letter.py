"""Dead letter queue for unprocessable records, written with error context to a sink."""

import json
import traceback
from typing import Any, TextIO

from config import Settings, configure_logging


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray)):
        return obj.hex()
    return repr(obj)


class DeadLetterQueue:
    """
    Wraps each rejected record in an envelope with the failing stage, the
    error and the record's offset in the input, one JSON object per line.
    Without a sink the envelopes are only counted and logged.
    """

    def __init__(self, settings: Settings, sink: TextIO | None = None):
        self.log = configure_logging("dlq", settings.log_level, settings.log_format)
        self._sink = sink
        self._sent = 0

    def send(self, record: Any, error: Exception, stage: str, offset: int = -1):
        """Wrap the original record with error context and write it to the sink."""
        envelope = {
            "stage": stage,
            "offset": offset,
            "error_type": type(error).__name__,
            "error_message": str(error),
            "stack_trace": "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
            "record": record,
        }
        if self._sink is not None:
            self._sink.write(json.dumps(envelope, default=_json_default) + "\n")
        self._sent += 1
        self.log.warning(
            "record_sent_to_dlq",
            stage=stage,
            offset=offset,
            error_type=type(error).__name__,
        )

    @property
    def sent(self) -> int:
        return self._sent

    def close(self):
        if self._sink is not None:
            self._sink.flush()

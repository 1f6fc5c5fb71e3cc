"""Stream processor: orchestrates consumer, per-key regression and fit reporting."""

import argparse
import contextlib
import json
import signal
import sys
from dataclasses import asdict
from typing import BinaryIO, TextIO

from config import Settings, configure_logging
from processor.consumer import StreamConsumer
from processor.dead_letter import DeadLetterQueue
from processor.schemas import FitReport, Observation
from processor.trend import RegressionTracker


class StreamProcessor:
    """
    Wires together: observation stream → StreamConsumer → RegressionTracker → fit reports.

    A key's fit is written as a JSON line every emit_every accepted
    observations for that key, once the key has enough points for a fit.
    When the input ends, keys with observations not yet covered by a report
    get a final one.
    """

    def __init__(
        self,
        settings: Settings,
        stream: BinaryIO,
        out: TextIO,
        dead_letter_sink: TextIO | None = None,
    ):
        self.settings = settings
        self.log = configure_logging("stream-processor", settings.log_level, settings.log_format)
        self._out = out

        self._tracker = RegressionTracker(
            x_delta=settings.x_delta,
            min_points=settings.trend_min_points,
            slope_epsilon=settings.trend_slope_epsilon,
        )
        self._accepted: dict[str, int] = {}
        self._last_x: dict[str, float] = {}
        self._unreported: set[str] = set()
        self._reports = 0

        self._dlq = DeadLetterQueue(settings, dead_letter_sink)
        self._consumer = StreamConsumer(
            settings, stream, handler=self.process_observation, dlq=self._dlq
        )

    def process_observation(self, observation: Observation):
        """Feed one observation into its key's window and report when due."""
        key = observation.key
        self._tracker.add(key, observation.x, observation.y)

        self._last_x[key] = observation.x
        self._accepted[key] = self._accepted.get(key, 0) + 1
        self._unreported.add(key)

        if self._accepted[key] % self.settings.emit_every == 0:
            self._emit(key)

    def _emit(self, key: str) -> bool:
        trend = self._tracker.get_fit(key)
        if trend is None:
            return False

        report = FitReport(x=self._last_x[key], **asdict(trend))
        self._out.write(json.dumps(report.to_json_dict()) + "\n")
        self._unreported.discard(key)
        self._reports += 1
        return True

    def _flush_final(self):
        for key in self._tracker.tracked_keys:
            if key in self._unreported:
                self._emit(key)
        self._out.flush()

    def run(self) -> int:
        """Consume the whole stream. Returns the number of rejected records."""
        self.log.info(
            "stream_processor_starting",
            x_delta=self.settings.x_delta,
            emit_every=self.settings.emit_every,
        )
        try:
            self._consumer.run()
        finally:
            self._flush_final()
            self._dlq.close()
            self.log.info(
                "stream_processor_stopped",
                processed=self._consumer.processed,
                rejected=self._consumer.errors,
                reports=self._reports,
                keys=len(self._tracker.tracked_keys),
            )
        return self._consumer.errors

    def shutdown(self, signum, frame):
        self.log.info("shutdown_signal", signal=signum)
        self._consumer.stop()

    @property
    def reports(self) -> int:
        return self._reports


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Windowed linear regression over an observation stream"
    )
    parser.add_argument(
        "--input",
        type=str,
        default="-",
        help="Path to the observation stream, '-' for stdin",
    )
    parser.add_argument(
        "--format",
        choices=StreamConsumer.FORMATS,
        default=None,
        help="Input encoding (default from REGRESSION_INPUT_FORMAT)",
    )
    parser.add_argument(
        "--x-delta",
        type=float,
        default=None,
        help="Window width in x units (default from REGRESSION_X_DELTA)",
    )
    parser.add_argument(
        "--emit-every",
        type=int,
        default=None,
        help="Emit a fit every N accepted observations per key",
    )
    parser.add_argument(
        "--dead-letter",
        type=str,
        default=None,
        help="File to append rejected records to as JSON lines",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any record was rejected",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    overrides = {
        "input_format": args.format,
        "x_delta": args.x_delta,
        "emit_every": args.emit_every,
    }
    settings = Settings(**{k: v for k, v in overrides.items() if v is not None})

    with contextlib.ExitStack() as stack:
        if args.input == "-":
            stream = sys.stdin.buffer
        else:
            stream = stack.enter_context(open(args.input, "rb"))

        dead_letter_sink = None
        if args.dead_letter:
            dead_letter_sink = stack.enter_context(
                open(args.dead_letter, "a", encoding="utf-8")
            )

        processor = StreamProcessor(settings, stream, sys.stdout, dead_letter_sink)
        previous = {
            signum: signal.signal(signum, processor.shutdown)
            for signum in (signal.SIGTERM, signal.SIGINT)
        }
        try:
            rejected = processor.run()
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)

    return 1 if args.strict and rejected else 0


if __name__ == "__main__":
    sys.exit(main())

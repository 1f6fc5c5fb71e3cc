"""Observation stream consumer with validation and dead-lettering."""

import json
from typing import Any, BinaryIO, Callable, Iterator

import msgpack
from pydantic import ValidationError

from config import Settings, configure_logging
from processor.dead_letter import DeadLetterQueue
from processor.schemas import Observation
from regression import InvalidOrderError


class StreamConsumer:
    """
    Reads an observation stream from a binary file object, decodes it as
    JSON lines or MessagePack, validates each record into an Observation
    and routes it to a handler.

    Records that cannot be decoded or validated, and observations the
    handler rejects as out of order, are sent to the dead letter queue and
    the stream continues. A malformed MessagePack stream cannot be resynced,
    so consumption stops after dead-lettering the decode error. A stream that
    ends partway through a record is a decode error too.
    """

    FORMATS = ("jsonl", "msgpack")
    READ_SIZE = 64 * 1024

    def __init__(
        self,
        settings: Settings,
        stream: BinaryIO,
        handler: Callable[[Observation], None],
        dlq: DeadLetterQueue,
        input_format: str | None = None,
    ):
        input_format = input_format or settings.input_format
        if input_format not in self.FORMATS:
            raise ValueError(f"Unknown input format: {input_format!r}")

        self.settings = settings
        self.log = configure_logging("consumer", settings.log_level, settings.log_format)
        self._stream = stream
        self._handler = handler
        self._dlq = dlq
        self._format = input_format
        self._running = True
        self._processed = 0
        self._errors = 0

    def run(self):
        """Main consumption loop. Returns when the stream is exhausted or stop() is called."""
        self.log.info("consumer_started", input_format=self._format)
        try:
            for offset, (raw, value, decode_error) in enumerate(self._decode()):
                if decode_error is not None:
                    self._reject(raw, decode_error, "decode", offset)
                else:
                    self._process(raw, value, offset)
                if not self._running:
                    break
        except KeyboardInterrupt:
            pass
        finally:
            self.log.info("consumer_closing", processed=self._processed, errors=self._errors)

    def _process(self, raw: Any, value: Any, offset: int):
        try:
            observation = Observation.model_validate(value)
        except ValidationError as e:
            self._reject(raw, e, "validate", offset)
            return

        try:
            self._handler(observation)
        except InvalidOrderError as e:
            self._reject(raw, e, "order", offset)
            return

        self._processed += 1
        if self._processed % self.settings.progress_every == 0:
            self.log.info(
                "consumer_progress",
                processed=self._processed,
                errors=self._errors,
            )

    def _reject(self, raw: Any, error: Exception, stage: str, offset: int):
        self._errors += 1
        self.log.warning(
            "observation_rejected",
            stage=stage,
            offset=offset,
            error=str(error),
        )
        self._dlq.send(raw, error, stage=stage, offset=offset)

    def _decode(self) -> Iterator[tuple[Any, Any, Exception | None]]:
        """Yield (raw, decoded, error) per record; error is set when decoding failed."""
        if self._format == "jsonl":
            yield from self._decode_jsonl()
        else:
            yield from self._decode_msgpack()

    def _decode_jsonl(self) -> Iterator[tuple[Any, Any, Exception | None]]:
        for line in self._stream:
            line = line.strip()
            if not line:
                continue
            raw = line.decode("utf-8", errors="replace")
            try:
                value = json.loads(line)
            except ValueError as e:
                yield raw, None, e
                continue
            yield raw, value, None

    def _decode_msgpack(self) -> Iterator[tuple[Any, Any, Exception | None]]:
        unpacker = msgpack.Unpacker(raw=False)
        fed = 0
        while True:
            chunk = self._stream.read(self.READ_SIZE)
            if not chunk:
                break
            unpacker.feed(chunk)
            fed += len(chunk)
            while True:
                try:
                    value = next(unpacker)
                except StopIteration:
                    break
                except (msgpack.exceptions.UnpackException, ValueError) as e:
                    yield None, None, e
                    return
                yield value, value, None

        leftover = fed - unpacker.tell()
        if leftover:
            yield None, None, msgpack.exceptions.OutOfData(
                f"stream ended inside a record ({leftover} trailing bytes)"
            )

    def stop(self):
        self._running = False

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def errors(self) -> int:
        return self._errors

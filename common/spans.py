"""
Bor span registry backed by Heimdall.

A span is an epoch of the producer rotation. The registry fetches all
published spans and resolves which producer is expected to author a block.
"""

import logging
from dataclasses import dataclass

from common.config.constants import SPAN_PATH
from common.errors import FetchError, VerificationError
from common.rest import RestError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Span:
    id: str
    start_block: int
    end_block: int
    producer_val_id: int
    producer_address: str

    def contains(self, height: int) -> bool:
        return self.start_block <= height <= self.end_block


def parse_span(index: int, payload: dict) -> Span | None:
    """
    Parse a Heimdall span payload.

    Returns None for spans with more than one selected producer: those cover a
    rotation in progress and can't predict a single author.

    Raises:
        FetchError: If the payload is malformed
    """
    raw = payload.get("span", payload) if isinstance(payload, dict) else None
    if not isinstance(raw, dict):
        raise FetchError(f"span {index}: unexpected payload {payload!r}")

    producers = raw.get("selected_producers") or []
    if len(producers) > 1:
        logger.debug(f"span {index}: skipping, {len(producers)} selected producers")
        return None
    if not producers:
        raise FetchError(f"span {index}: no selected producers")

    producer = producers[0]
    try:
        start_block = int(raw["start_block"])
        end_block = int(raw["end_block"])
        val_id = int(producer["val_id"])
        signer = producer["signer"]
    except (KeyError, TypeError, ValueError) as e:
        raise FetchError(f"span {index}: invalid fields: {e}; payload: {raw!r}") from e

    if start_block > end_block:
        raise FetchError(f"span {index}: start block {start_block} > end block {end_block}")
    if not signer:
        raise FetchError(f"span {index}: empty producer signer")

    return Span(
        id=str(raw.get("id", index)),
        start_block=start_block,
        end_block=end_block,
        producer_val_id=val_id,
        producer_address=signer,
    )


class SpanRegistry:
    """
    Owns the current snapshot of spans.

    `refresh()` rebuilds the snapshot wholesale and swaps it in, so later
    publications supersede earlier partial views. Lookups scan newest first.
    """

    def __init__(self, rest):
        self.rest = rest
        self._spans: tuple[Span, ...] = ()

    @property
    def spans(self) -> tuple[Span, ...]:
        return self._spans

    def refresh(self) -> None:
        """
        Fetch spans 0, 1, 2, ... until a request fails.

        Raises:
            FetchError: If span 0 can't be fetched, or any fetched span is malformed
        """
        fetched: list[Span] = []
        index = 0
        while True:
            path = SPAN_PATH.format(index=index)
            try:
                payload = self.rest.get(path)
            except RestError as e:
                if index == 0:
                    raise FetchError(f"failed to fetch span 0: {e}") from e
                break

            span = parse_span(index, payload)
            if span is not None:
                fetched.append(span)
            index += 1

        self._spans = tuple(fetched)
        logger.info(f"Fetched {len(self._spans)} single-producer spans out of {index}")

    def resolve_expected_producer(self, height: int) -> Span | None:
        """Most recently fetched span covering `height`, or None."""
        for span in reversed(self._spans):
            if span.contains(height):
                return span
        return None

    def expected_author(self, height: int) -> str:
        """
        Raises:
            VerificationError: If no span covers `height`
        """
        span = self.resolve_expected_producer(height)
        if span is None:
            raise VerificationError(f"no span found covering block {height}")
        return span.producer_address

"""
Event tracking for the gateway chain.

Turns a submission, or a plain wait, into one of three outcomes: the expected
event's data, an ``ExplicitFailure`` when the chain emits the failure event
first, or a timeout. Events are judged strictly by their position in the
stream, never by arrival time.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from .chain_client import ChainClient
from .errors import EventStreamEnded, EventTimeout, ExplicitFailure
from .models import (
    CHAIN_PROCESSED_EVENT,
    ETH_PROCESS_FAILURE_EVENT,
    NOTICE_EVENT,
    ChainEvent,
    EventKey,
    EventWaitSpec,
    FinalityMode,
    Notice,
)
from .utils.notice_encoder import NoticeEncoder

# Stands in for an omitted timeout argument so that None can mean no bound
_TRACKER_TIMEOUT: Any = object()


@asynccontextmanager
async def closing_stream(events: AsyncIterator[ChainEvent]):
    """Release the underlying subscription however the wait ends."""
    try:
        yield events
    finally:
        if (aclose := getattr(events, "aclose", None)) is not None:
            await aclose()


class EventTracker:
    """
    Waits for gateway events after a submission or on their own.

    The tracker never retries a submission. Waits are bounded by ``timeout``
    seconds (``None`` waits until the stream ends) and are cancelled cleanly
    together with the calling task.
    """

    DEFAULT_TIMEOUT: float = 300.0

    def __init__(
        self,
        client: ChainClient,
        timeout: float | None = DEFAULT_TIMEOUT,
        finality: FinalityMode = FinalityMode.FINALIZED
    ) -> None:
        """
        Initialize the EventTracker.

        Args:
            client: Gateway chain client
            timeout: Default maximum wait in seconds, None for no bound
            finality: Default point at which submissions are observed
        """
        self.client = client
        self.timeout = timeout
        self.finality = finality
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def send_and_wait(
        self,
        call: Any,
        expected_event: EventKey | tuple[str, str],
        failure_event: EventKey | tuple[str, str] | None = None,
        finality: FinalityMode | None = None,
        timeout: float | None = _TRACKER_TIMEOUT
    ) -> Any:
        """
        Submit a call and wait for the expected event among the events it produces.

        Args:
            call: Signed call understood by the chain client
            expected_event: Event signalling success
            failure_event: Event signalling that the chain failed to process the call
            finality: Observe at inclusion or finality (defaults to the tracker's)
            timeout: Maximum wait in seconds, None for no bound;
                defaults to the tracker's timeout

        Returns:
            Data of the first expected event

        Raises:
            ExplicitFailure: If the failure event comes first
            EventStreamEnded: If the submission produced neither event
            EventTimeout: If the wait exceeded the timeout
        """
        expected = EventKey.of(expected_event)
        spec = EventWaitSpec.build(expected.pallet, expected.name, failure_event)
        mode = finality or self.finality

        self.logger.info(f"Submitting call, waiting for {spec.expected} at {mode.value}")
        events = self.client.submit_call(call, mode)
        event = await self._await_outcome(events, spec, self._timeout(timeout))
        return event.data

    async def wait_for_event(
        self,
        pallet: str,
        event_name: str,
        failure_event: EventKey | tuple[str, str] | None = None,
        timeout: float | None = _TRACKER_TIMEOUT
    ) -> Any:
        """
        Wait for an event triggered by someone else's action.

        Returns:
            Data of the first matching event

        Raises:
            ExplicitFailure: If the failure event comes first
            EventTimeout: If the wait exceeded the timeout
        """
        spec = EventWaitSpec.build(pallet, event_name, failure_event)

        self.logger.info(
            f"Waiting for {spec.expected}"
            + (f" (failure: {spec.failure})" if spec.failure else "")
        )
        events = self.client.subscribe_events(spec.keys)
        event = await self._await_outcome(events, spec, self._timeout(timeout))
        return event.data

    async def send_and_collect(
        self,
        call: Any,
        finality: FinalityMode | None = None,
        timeout: float | None = _TRACKER_TIMEOUT
    ) -> list[ChainEvent]:
        """Submit a call and return every event it produced, in order."""
        mode = finality or self.finality
        limit = self._timeout(timeout)

        async def collect() -> list[ChainEvent]:
            async with closing_stream(self.client.submit_call(call, mode)) as events:
                return [event async for event in events]

        try:
            collected = await asyncio.wait_for(collect(), limit)
        except asyncio.TimeoutError:
            self.logger.error(f"Timed out after {limit}s collecting submission events")
            raise EventTimeout(None, limit) from None

        self.logger.info(f"Call produced {len(collected)} events at {mode.value}")
        return collected

    async def wait_for_notice(self, failure_event: EventKey | tuple[str, str] | None = None) -> Notice:
        """Wait for the next ``cash.Notice`` event and decode its notice."""
        data = await self.wait_for_event(NOTICE_EVENT.pallet, NOTICE_EVENT.name, failure_event)
        return NoticeEncoder.from_event_data(data)

    async def wait_for_chain_processed(self, failure_event: EventKey | tuple[str, str] | None = None) -> Any:
        return await self.wait_for_event(
            CHAIN_PROCESSED_EVENT.pallet, CHAIN_PROCESSED_EVENT.name, failure_event
        )

    async def wait_for_eth_process_event(self, pallet: str, event_name: str) -> Any:
        """Like ``wait_for_event`` but fails on ``cash.FailedProcessingEthEvent``."""
        return await self.wait_for_event(pallet, event_name, ETH_PROCESS_FAILURE_EVENT)

    async def wait_for_eth_process_failure(self) -> Any:
        return await self.wait_for_event(ETH_PROCESS_FAILURE_EVENT.pallet, ETH_PROCESS_FAILURE_EVENT.name)

    def _timeout(self, override: float | None) -> float | None:
        return self.timeout if override is _TRACKER_TIMEOUT else override

    async def _await_outcome(
        self,
        events: AsyncIterator[ChainEvent],
        spec: EventWaitSpec,
        timeout: float | None
    ) -> ChainEvent:
        try:
            return await asyncio.wait_for(self._scan(events, spec), timeout)
        except asyncio.TimeoutError:
            self.logger.error(f"Timed out after {timeout}s waiting for {spec.expected}")
            raise EventTimeout(spec.expected, timeout) from None

    async def _scan(self, events: AsyncIterator[ChainEvent], spec: EventWaitSpec) -> ChainEvent:
        async with closing_stream(events):
            async for event in events:
                if event.matches(spec.expected):
                    self.logger.info(f"Observed {event.key} in block {event.block_number}")
                    return event
                if spec.failure is not None and event.matches(spec.failure):
                    self.logger.warning(f"Observed failure event {event.key} in block {event.block_number}")
                    raise ExplicitFailure(event)

        raise EventStreamEnded(spec.expected)

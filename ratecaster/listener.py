# ratecaster/listener.py
"""
Live feed of DappRatingSubmitted events.

Polls the chain head and pulls new logs in block ranges, so it works over a
plain HTTP provider. Only events mined after ``start()`` are delivered.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Optional

from . import config
from .chain.abi import RATING_SUBMITTED_EVENT
from .errors import RateCasterError
from .hashing import to_hex_key
from .models import DappReview

logger = logging.getLogger(__name__)


class ReviewListener:
    def __init__(self, binding, callback: Callable[[DappReview], Any], poll_interval: Optional[float] = None):
        self.binding = binding
        self.callback = callback
        self.poll_interval = poll_interval if poll_interval is not None else config.POLL_INTERVAL
        self.last_block: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        # read the head up front so a dead connection fails the caller, not the task
        self.last_block = await self.binding.connection.block_number()
        self._task = asyncio.create_task(self._run())
        logger.info("Started listening for new reviews from block %d", self.last_block)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Review listener task had already failed")
        self._task = None
        logger.info("Stopped listening for %s events", RATING_SUBMITTED_EVENT)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                await self.poll()
            except RateCasterError as e:
                logger.warning("Review listener poll failed: %s", e)
            except Exception:
                logger.exception("Unexpected error in review listener poll")

    async def poll(self) -> int:
        """Deliver events mined since the last poll. Returns how many were delivered."""
        conn = self.binding.connection
        head = await conn.block_number()
        if self.last_block is not None and head <= self.last_block:
            return 0

        from_block = (self.last_block + 1) if self.last_block is not None else head
        logs = await conn.get_events(
            self.binding.network.contract_address,
            self.binding.contract.abi,
            RATING_SUBMITTED_EVENT,
            from_block,
            head,
        )
        delivered = 0
        for log in logs:
            try:
                review = await self._to_review(log)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed %s log: %r", RATING_SUBMITTED_EVENT, e)
                continue
            logger.debug("DappRatingSubmitted event received: attestationId %s", review.attestation_id)
            try:
                result = self.callback(review)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception:
                logger.exception("Review callback raised for %s", review.attestation_id)
        self.last_block = head
        return delivered

    async def _to_review(self, log) -> DappReview:
        args = log["args"]
        attestation_id = to_hex_key(args["attestationId"])
        timestamp = int(time.time())
        try:
            timestamp = await self.binding.connection.block_timestamp(log["blockNumber"])
        except RateCasterError as e:
            logger.warning("Could not get block timestamp for event %s: %s", attestation_id, e)

        return DappReview(
            id=attestation_id,
            attestation_id=attestation_id,
            dapp_id=to_hex_key(args["dappId"]),
            star_rating=int(args["starRating"]),
            review_text=args.get("reviewText", "") or "",
            rater=str(args["rater"]),
            timestamp=timestamp,
        )

# ratecaster/binding.py
"""
Network binding: connection -> chain id -> parameters -> bound adapters.

States: UNINITIALIZED -> RESOLVING -> READY | FAILED. Both end states are
terminal; re-binding means building a new NetworkBinder. The READY result
is an immutable SessionBinding snapshot, so operations that already hold
one keep working against it while a newer binding takes over.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from .aggregation import RatingAggregator
from .chain.rating_contract import DappRatingContract
from .errors import ConfigurationError, RateCasterError, TransportError
from .networks import NetworkOverrides, NetworkParameters, resolve
from .subgraph import SubgraphClient

logger = logging.getLogger(__name__)

_versions = itertools.count(1)


class BindingState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionBinding:
    version: int
    network: NetworkParameters
    connection: Any
    contract: DappRatingContract
    index: SubgraphClient
    aggregator: RatingAggregator


class NetworkBinder:
    def __init__(
        self,
        connection,
        networks: Optional[Mapping[int, NetworkParameters]] = None,
        overrides: Optional[Mapping[int, NetworkOverrides]] = None,
        session=None,
        http_timeout: Optional[float] = None,
    ):
        if connection is None:
            raise ConfigurationError("Provider is not initialized")
        self.connection = connection
        self.networks = networks
        self.overrides = dict(overrides or {})
        self.session = session
        self.http_timeout = http_timeout
        self.version = next(_versions)
        self.state = BindingState.UNINITIALIZED
        self._task: Optional[asyncio.Future] = None

    def start(self) -> asyncio.Future:
        """Schedule resolution (idempotent). Needs a running event loop."""
        if self._task is None:
            self.state = BindingState.RESOLVING
            self._task = asyncio.ensure_future(self._resolve())
            self._task.add_done_callback(self._settle)
        return self._task

    async def ready(self) -> SessionBinding:
        """Wait for the binding; re-raises the failure on every call once FAILED."""
        return await asyncio.shield(self.start())

    def _settle(self, task: asyncio.Future) -> None:
        if task.cancelled():
            self.state = BindingState.FAILED
            return
        # retrieving the exception here keeps asyncio from reporting it as unhandled
        err = task.exception()
        self.state = BindingState.FAILED if err else BindingState.READY

    async def _resolve(self) -> SessionBinding:
        started = time.perf_counter()
        try:
            chain_id = await self.connection.get_network_identity()
        except RateCasterError as e:
            logger.error("SDK initialization failed: %s", e)
            raise e.with_context("bind", step="network identity") from e
        except Exception as e:
            logger.error("SDK initialization failed: %s", e)
            raise TransportError(f"Failed to get network from provider: {e}",
                                 operation="bind", step="network identity") from e

        if chain_id is None:
            raise ConfigurationError("Failed to get network from provider", operation="bind")
        chain_id = int(chain_id)
        logger.debug("Network detection completed, chain ID: %s", chain_id)

        try:
            network = resolve(chain_id, self.networks, self.overrides)
        except ConfigurationError:
            logger.error("Configuration not found for chain: %s", chain_id)
            raise

        index = SubgraphClient(network.graphql_url, session=self.session, timeout=self.http_timeout)
        binding = SessionBinding(
            version=self.version,
            network=network,
            connection=self.connection,
            contract=DappRatingContract(self.connection, network),
            index=index,
            aggregator=RatingAggregator(index),
        )
        logger.info("Connected to %s (Chain ID: %s)", network.name, chain_id)
        logger.debug(
            "Binding v%d ready in %.2fms, contract at %s",
            self.version, (time.perf_counter() - started) * 1000, network.contract_address,
        )
        return binding

# ratecaster/networks.py
"""
Static per-network parameters and the override layer applied at binding time.

The base table is built once (lazily) and handed out as a read-only mapping.
Per-client customisation never touches it: ``resolve`` layers a
``NetworkOverrides`` value on top and returns a new ``NetworkParameters``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from . import config
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

POLYGON = 137
POLYGON_AMOY = 80002

_SUBGRAPH_PATHS = {
    POLYGON: "alexanders-team--782474/example-subgraph-name/api",
    POLYGON_AMOY: "alexanders-team--782474/pol_amoy/version/0.0.2/api",
}

_CONTRACT_ADDRESSES = {
    POLYGON: "0xD6E93AC22B754427077290d660442564BB7E6760",
    POLYGON_AMOY: "0xeF6b5d35874D7a83e78A8555d93999098A53547C",
}


@dataclass(frozen=True)
class NetworkParameters:
    """Immutable configuration for one supported network."""

    chain_id: int
    name: str
    graphql_url: str
    contract_address: str
    explorer: str

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer.rstrip('/')}/tx/{tx_hash}"

    def address_url(self, address: str) -> str:
        return f"{self.explorer.rstrip('/')}/address/{address}"


@dataclass(frozen=True)
class NetworkOverrides:
    """Per-client replacements for individual fields of a base entry."""

    contract_address: Optional[str] = None
    graphql_url: Optional[str] = None
    explorer: Optional[str] = None
    name: Optional[str] = None

    def apply(self, params: NetworkParameters) -> NetworkParameters:
        changes = {
            field: value
            for field, value in (
                ("contract_address", self.contract_address),
                ("graphql_url", self.graphql_url),
                ("explorer", self.explorer),
                ("name", self.name),
            )
            if value
        }
        return replace(params, **changes) if changes else params


def subgraph_url(path: str, key: Optional[str] = None) -> str:
    key = config.SUBGRAPH_KEY if key is None else key
    return f"{config.SUBGRAPH_BASE_URL}/{key}/{path}"


@lru_cache(maxsize=1)
def default_networks() -> Mapping[int, NetworkParameters]:
    """Build the base network table. Cached for the life of the process."""
    if not config.SUBGRAPH_KEY:
        logger.warning("SUBGRAPH_KEY is not set; index queries will likely be rejected")

    table: Dict[int, NetworkParameters] = {
        POLYGON: NetworkParameters(
            chain_id=POLYGON,
            name="Polygon",
            graphql_url=subgraph_url(_SUBGRAPH_PATHS[POLYGON]),
            contract_address=_CONTRACT_ADDRESSES[POLYGON],
            explorer="https://polygonscan.com",
        ),
        POLYGON_AMOY: NetworkParameters(
            chain_id=POLYGON_AMOY,
            name="Polygon Amoy",
            graphql_url=subgraph_url(_SUBGRAPH_PATHS[POLYGON_AMOY]),
            contract_address=_CONTRACT_ADDRESSES[POLYGON_AMOY],
            explorer="https://amoy.polygonscan.com",
        ),
    }
    return MappingProxyType(table)


def resolve(
    chain_id: int,
    networks: Optional[Mapping[int, NetworkParameters]] = None,
    overrides: Optional[Mapping[int, NetworkOverrides]] = None,
) -> NetworkParameters:
    """
    Look up the parameters for ``chain_id``.

    Raises ConfigurationError when the table has no entry. Overrides only
    adjust an existing entry; they cannot introduce a new network.
    """
    table = default_networks() if networks is None else networks
    params = table.get(chain_id)
    if params is None:
        raise ConfigurationError(
            f"Configuration not found for chain: {chain_id}",
            chain_id=chain_id,
        )
    override = (overrides or {}).get(chain_id)
    if override is not None:
        params = override.apply(params)
    return params


def supported_chain_ids(networks: Optional[Mapping[int, NetworkParameters]] = None):
    table = default_networks() if networks is None else networks
    return sorted(table.keys())

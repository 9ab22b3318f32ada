# ratecaster/chain/connection.py
"""
Chain connection capability over web3.py's AsyncWeb3.

Every contract read, transaction and log query in the client goes through
this object, so tests can swap in an in-memory fake with the same methods.
Failures are mapped onto the client's error taxonomy here: reverts and
JSON-RPC error payloads become RemoteError, anything else the provider
raises becomes TransportError.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ContractLogicError, Web3RPCError
from web3.middleware import ExtraDataToPOAMiddleware

from .. import config
from ..errors import RateCasterError, RemoteError, TransportError

logger = logging.getLogger(__name__)


@contextmanager
def _provider_errors(step: str):
    try:
        yield
    except RateCasterError:
        raise
    except ContractLogicError as e:
        # custom errors stringify to their selector only; keep the raw data
        raise RemoteError(str(e), step=step, data=getattr(e, "data", None)) from e
    except Web3RPCError as e:
        raise RemoteError(str(e), step=step) from e
    except Exception as e:
        raise TransportError(f"{type(e).__name__}: {e}", step=step) from e


class ChainConnection:
    def __init__(self, w3: AsyncWeb3):
        self.w3 = w3

    @classmethod
    def from_rpc_url(cls, rpc_url: Optional[str] = None, poa: bool = True) -> "ChainConnection":
        w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url or config.RPC_URL))
        if poa:
            # Polygon blocks carry extra-data beyond 32 bytes
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        return cls(w3)

    def contract(self, address: str, abi: List[Dict[str, Any]]):
        return self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address),
            abi=abi,
        )

    # --------------------------------------------------
    # Network identity
    # --------------------------------------------------

    async def get_network_identity(self) -> int:
        with _provider_errors("network identity"):
            return int(await self.w3.eth.chain_id)

    # --------------------------------------------------
    # Reads
    # --------------------------------------------------

    async def call(self, address: str, abi, function: str, *args) -> Any:
        with _provider_errors("call"):
            fn = getattr(self.contract(address, abi).functions, function)
            return await fn(*args).call()

    async def block_number(self) -> int:
        with _provider_errors("block number"):
            return int(await self.w3.eth.block_number)

    async def block_timestamp(self, block_number: int) -> int:
        with _provider_errors("block lookup"):
            block = await self.w3.eth.get_block(block_number)
            return int(block["timestamp"])

    async def get_events(
        self, address: str, abi, event: str, from_block: int, to_block: int,
    ) -> List[Any]:
        with _provider_errors("log query"):
            ev = getattr(self.contract(address, abi).events, event)
            return list(await ev.get_logs(from_block=from_block, to_block=to_block))

    # --------------------------------------------------
    # Writes
    # --------------------------------------------------

    async def submit(
        self,
        address: str,
        abi,
        function: str,
        args: Sequence[Any],
        signer: LocalAccount,
        value: int = 0,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Build, sign and broadcast a transaction. Returns the 0x tx hash."""
        with _provider_errors("submission"):
            params: Dict[str, Any] = {"from": signer.address}
            params.update(overrides or {})
            # the value is the fee the contract asked for; overrides cannot change it
            params["value"] = int(value)
            if "nonce" not in params:
                params["nonce"] = await self.w3.eth.get_transaction_count(
                    signer.address, "pending"
                )

            fn = getattr(self.contract(address, abi).functions, function)
            tx = await fn(*args).build_transaction(params)
            signed = signer.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            return AsyncWeb3.to_hex(tx_hash)

    async def await_confirmation(self, tx_hash: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        with _provider_errors("confirmation"):
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=timeout or config.RECEIPT_TIMEOUT,
            )
            return dict(receipt)


@dataclass(frozen=True)
class TxHandle:
    """A broadcast (not yet confirmed) transaction."""

    tx_hash: str
    operation: str
    value: int = 0
    explorer_url: str = ""
    connection: Any = field(default=None, repr=False, compare=False)

    async def wait(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Block until the transaction is mined; returns the receipt."""
        if self.connection is None:
            raise TransportError("no connection bound to this transaction", operation=self.operation)
        return await self.connection.await_confirmation(self.tx_hash, timeout)

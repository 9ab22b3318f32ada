# ratecaster/chain/rating_contract.py
"""
Typed wrapper around the DappRatingSystem contract.

Every identifier that crosses into a contract argument goes through
``canonicalize`` first; that is what keeps on-chain records joinable with
indexed rating events. Writes return a TxHandle as soon as the transaction
is broadcast; confirmation is left to the caller.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from web3 import Web3

from ..categories import resolve_category
from ..errors import RateCasterError, RemoteError
from ..hashing import canonicalize, to_hex_key
from ..models import DappRegistration
from ..networks import NetworkParameters
from ..validation import (
    require_non_empty,
    validate_address,
    validate_dapp_fields,
    validate_star_rating,
)
from .abi import DAPP_RATING_ABI
from .connection import TxHandle

logger = logging.getLogger(__name__)

_ZERO_KEY = "0x" + "00" * 32
# revert strings from older deployments
_NOT_FOUND_MARKERS = ("not registered", "dapp not found")
# custom errors that mean the dApp id is unknown
_NOT_FOUND_ERRORS = ("InvalidDappId",)

_DAPP_KEYS = ("dappId", "name", "description", "url", "imageUrl", "categoryId", "owner")


def error_selectors(abi: List[Dict[str, Any]]) -> Dict[str, str]:
    """Map each custom error's 4-byte selector (0x-hex, lower case) to its name."""
    selectors = {}
    for entry in abi:
        if entry.get("type") != "error":
            continue
        types = ",".join(arg["type"] for arg in entry.get("inputs", []))
        selector = Web3.keccak(text=f"{entry['name']}({types})")[:4]
        selectors[Web3.to_hex(selector)] = entry["name"]
    return selectors


def revert_error_name(err: RemoteError, selectors: Dict[str, str]) -> Optional[str]:
    data = getattr(err, "data", None)
    if isinstance(data, (bytes, bytearray)):
        data = Web3.to_hex(bytes(data))
    if not isinstance(data, str) or len(data) < 10:
        return None
    return selectors.get(data[:10].lower())


def _is_not_found(err: RemoteError, selectors: Dict[str, str]) -> bool:
    if revert_error_name(err, selectors) in _NOT_FOUND_ERRORS:
        return True
    text = str(err.message).lower().replace(" ", "")
    return any(marker.replace(" ", "") in text for marker in _NOT_FOUND_MARKERS)


def to_registration(raw: Any) -> DappRegistration:
    """Decode a Dapp struct (tuple or mapping) into a DappRegistration."""
    if isinstance(raw, dict):
        values = {k: raw.get(k) for k in _DAPP_KEYS}
    else:
        values = dict(zip(_DAPP_KEYS, raw))
    category_id = int(values.get("categoryId") or 0)
    info = resolve_category(category_id)
    return DappRegistration(
        dapp_id=to_hex_key(values["dappId"]),
        name=values.get("name") or "",
        description=values.get("description") or "",
        url=values.get("url") or "",
        image_url=values.get("imageUrl") or "",
        category_id=category_id,
        category=info.name,
        category_group=info.group_name,
        owner=values.get("owner") or "",
    )


class DappRatingContract:
    def __init__(self, connection, network: NetworkParameters, abi: Optional[List[Dict[str, Any]]] = None):
        self.connection = connection
        self.network = network
        self.abi = abi or DAPP_RATING_ABI
        self.error_selectors = error_selectors(self.abi)

    @property
    def address(self) -> str:
        return self.network.contract_address

    async def _call(self, function: str, *args, operation: str, identifier: Optional[str] = None):
        try:
            return await self.connection.call(self.address, self.abi, function, *args)
        except RateCasterError as e:
            raise e.with_context(operation, identifier, step=f"call {function}") from e

    async def _send(
        self,
        function: str,
        args,
        signer,
        *,
        operation: str,
        identifier: Optional[str] = None,
        value: int = 0,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TxHandle:
        try:
            tx_hash = await self.connection.submit(
                self.address, self.abi, function, list(args), signer,
                value=value, overrides=overrides,
            )
        except RateCasterError as e:
            logger.error("%s failed for %s: %s", operation, identifier, e)
            raise e.with_context(operation, identifier, step="submission") from e

        logger.info("%s transaction sent: %s", operation, tx_hash)
        return TxHandle(
            tx_hash=tx_hash,
            operation=operation,
            value=value,
            explorer_url=self.network.tx_url(tx_hash),
            connection=self.connection,
        )

    async def _fee(self, function: str, operation: str, identifier: Optional[str]) -> int:
        # read on every write: the fee is adjustable by the contract owner
        try:
            fee = await self.connection.call(self.address, self.abi, function)
        except RateCasterError as e:
            raise e.with_context(operation, identifier, step="fee lookup") from e
        logger.debug("%s: current %s is %s wei", operation, function, fee)
        return int(fee)

    # --------------------------------------------------
    # Fees
    # --------------------------------------------------

    async def rating_fee(self) -> int:
        return int(await self._call("dappRatingFee", operation="rating_fee"))

    async def registration_fee(self) -> int:
        return int(await self._call("dappRegistrationFee", operation="registration_fee"))

    # --------------------------------------------------
    # Writes
    # --------------------------------------------------

    async def submit_rating(self, dapp_id: str, stars: int, text: str, signer,
                            overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        require_non_empty(dapp_id, "dappId")
        validate_star_rating(stars)
        key = canonicalize(dapp_id)
        logger.debug("submit_rating: %s -> %s", dapp_id, key)

        fee = await self._fee("dappRatingFee", "submit_rating", dapp_id)
        return await self._send(
            "addDappRating", (key, stars, text or ""), signer,
            operation="submit_rating", identifier=dapp_id,
            value=fee, overrides=overrides,
        )

    async def revoke_rating(self, rating_uid: str, signer,
                            overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        require_non_empty(rating_uid, "ratingUid")
        return await self._send(
            "revokeDappRating", (rating_uid,), signer,
            operation="revoke_rating", identifier=rating_uid, overrides=overrides,
        )

    async def register_entity(self, name: str, description: str, url: str, image_url: str,
                              category_id: int, signer,
                              overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        validate_dapp_fields(name, description, url, image_url, category_id)
        fee = await self._fee("dappRegistrationFee", "register_entity", name)
        return await self._send(
            "registerDapp", (name, description or "", url, image_url, category_id), signer,
            operation="register_entity", identifier=name,
            value=fee, overrides=overrides,
        )

    async def update_entity(self, dapp_id: str, name: str, description: str, url: str,
                            image_url: str, category_id: int, signer,
                            overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        require_non_empty(dapp_id, "dappId")
        validate_dapp_fields(name, description, url, image_url, category_id)
        key = canonicalize(dapp_id)
        return await self._send(
            "updateDapp", (key, name, description or "", url, image_url, category_id), signer,
            operation="update_entity", identifier=dapp_id, overrides=overrides,
        )

    async def delete_entity(self, dapp_id: str, signer,
                            overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        require_non_empty(dapp_id, "dappId")
        key = canonicalize(dapp_id)
        return await self._send(
            "deleteDapp", (key,), signer,
            operation="delete_entity", identifier=dapp_id, overrides=overrides,
        )

    # --------------------------------------------------
    # Views
    # --------------------------------------------------

    async def get_registration(self, dapp_id: str) -> Optional[DappRegistration]:
        """Returns None when the dApp is not registered."""
        require_non_empty(dapp_id, "dappId")
        key = canonicalize(dapp_id)
        try:
            raw = await self.connection.call(self.address, self.abi, "getDapp", key)
        except RemoteError as e:
            if _is_not_found(e, self.error_selectors):
                logger.debug("dApp %s not registered", dapp_id)
                return None
            raise e.with_context("get_registration", dapp_id, step="call getDapp") from e
        except RateCasterError as e:
            raise e.with_context("get_registration", dapp_id, step="call getDapp") from e

        record = to_registration(raw)
        if record.dapp_id.lower() == _ZERO_KEY:
            return None
        return record

    async def get_all_registrations(self) -> List[DappRegistration]:
        raw = await self._call("getAllDapps", operation="get_all_registrations")
        records = [to_registration(item) for item in raw or []]
        logger.debug("Retrieved %d dapps from contract", len(records))
        return records

    async def is_registered(self, dapp_id: str) -> bool:
        require_non_empty(dapp_id, "dappId")
        key = canonicalize(dapp_id)
        return bool(await self._call("isDappRegistered", key,
                                     operation="is_registered", identifier=dapp_id))

    async def rating_count_for(self, dapp_id: str) -> int:
        require_non_empty(dapp_id, "dappId")
        key = canonicalize(dapp_id)
        return int(await self._call("dappRatingsCount", key,
                                    operation="rating_count_for", identifier=dapp_id))

    async def has_rated(self, account: str, dapp_id: str) -> bool:
        checksum = validate_address(account, "user address")
        require_non_empty(dapp_id, "dappId")
        key = canonicalize(dapp_id)
        return bool(await self._call("raterToProjectToRated", checksum, key,
                                     operation="has_rated", identifier=dapp_id))

    async def user_rating_count(self, account: str) -> int:
        checksum = validate_address(account, "user address")
        return int(await self._call("raterToNumberOfRates", checksum,
                                    operation="user_rating_count", identifier=checksum))


__all__ = ["DappRatingContract", "error_selectors", "to_registration"]

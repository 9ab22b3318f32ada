# ratecaster/client.py
"""
RateCaster: public entry point of the SDK.

Every network-facing method waits for the network binding first and then
works against the SessionBinding snapshot it received, so a concurrent
``set_provider`` / ``rebind`` never changes the network under a call that
is already running. Argument checks run before the binding is awaited.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .aggregation import ReadPolicy, parse_reviews
from .binding import BindingState, NetworkBinder, SessionBinding
from .categories import (
    get_all_categories,
    get_category_name_by_id,
    get_category_options,
    get_category_tree,
)
from .chain.connection import ChainConnection, TxHandle
from .errors import RateCasterError
from .listener import ReviewListener
from .models import DappReview, EnrichedDapp, ProjectStats
from .networks import NetworkOverrides, NetworkParameters
from .queries import GET_ALL_REVIEWS, GET_USER_REVIEWS, REVIEWS_COLLECTION
from .validation import (
    require_non_empty,
    validate_address,
    validate_dapp_fields,
    validate_star_rating,
)

logger = logging.getLogger(__name__)

_ROOT_LOGGER = "ratecaster"


class RateCaster:
    def __init__(
        self,
        connection,
        *,
        overrides: Optional[Mapping[int, NetworkOverrides]] = None,
        networks: Optional[Mapping[int, NetworkParameters]] = None,
        session=None,
        http_timeout: Optional[float] = None,
        bulk_read_policy: ReadPolicy = ReadPolicy.DEGRADE,
        poll_interval: Optional[float] = None,
    ):
        self._overrides = dict(overrides or {})
        self._networks = networks
        self._session = session
        self._http_timeout = http_timeout
        self.bulk_read_policy = ReadPolicy(bulk_read_policy)
        self.poll_interval = poll_interval
        self._listener: Optional[ReviewListener] = None

        logger.debug("SDK initialization started")
        self._binder = self._new_binder(connection)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass  # no loop yet: the binding starts on first use
        else:
            self._binder.start()

    @classmethod
    def from_rpc_url(cls, rpc_url: Optional[str] = None, **kwargs) -> "RateCaster":
        return cls(ChainConnection.from_rpc_url(rpc_url), **kwargs)

    def _new_binder(self, connection) -> NetworkBinder:
        return NetworkBinder(
            connection,
            networks=self._networks,
            overrides=self._overrides,
            session=self._session,
            http_timeout=self._http_timeout,
        )

    # --------------------------------------------------
    # Binding
    # --------------------------------------------------

    @property
    def state(self) -> BindingState:
        return self._binder.state

    @property
    def connection(self):
        return self._binder.connection

    async def ready(self) -> SessionBinding:
        return await self._binder.ready()

    async def set_provider(self, connection) -> SessionBinding:
        """Replace the connection and bind again from scratch."""
        logger.debug("Updating default provider")
        await self.stop_listening()
        self._binder = self._new_binder(connection)
        binding = await self.ready()
        logger.info("Default provider updated successfully")
        return binding

    async def rebind(self) -> SessionBinding:
        """Re-detect the network on the current connection (after a wallet network switch)."""
        return await self.set_provider(self.connection)

    # --------------------------------------------------
    # Writes
    # --------------------------------------------------

    async def submit_review(self, dapp_id: str, star_rating: int, review_text: str, signer,
                            overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        require_non_empty(dapp_id, "dappId")
        validate_star_rating(star_rating)
        binding = await self.ready()
        logger.info("Submitting review for dapp ID: %s from address: %s", dapp_id, signer.address)
        return await binding.contract.submit_rating(dapp_id, star_rating, review_text, signer, overrides)

    async def revoke_review(self, rating_uid: str, signer,
                            overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        require_non_empty(rating_uid, "ratingUid")
        binding = await self.ready()
        logger.info("Revoking review with UID: %s from address: %s", rating_uid, signer.address)
        return await binding.contract.revoke_rating(rating_uid, signer, overrides)

    async def register_dapp(self, name: str, description: str, url: str, image_url: str,
                            category_id: int, signer,
                            overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        validate_dapp_fields(name, description, url, image_url, category_id)
        binding = await self.ready()
        logger.info('Registering dapp "%s" from address: %s', name, signer.address)
        return await binding.contract.register_entity(
            name, description, url, image_url, category_id, signer, overrides,
        )

    async def update_dapp(self, dapp_id: str, name: str, description: str, url: str,
                          image_url: str, category_id: int, signer,
                          overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        require_non_empty(dapp_id, "dappId")
        validate_dapp_fields(name, description, url, image_url, category_id)
        binding = await self.ready()
        logger.info("Updating dapp with ID: %s from address: %s", dapp_id, signer.address)
        return await binding.contract.update_entity(
            dapp_id, name, description, url, image_url, category_id, signer, overrides,
        )

    async def delete_dapp(self, dapp_id: str, signer,
                          overrides: Optional[Dict[str, Any]] = None) -> TxHandle:
        require_non_empty(dapp_id, "dappId")
        binding = await self.ready()
        logger.info("Deleting dapp with ID: %s from address: %s", dapp_id, signer.address)
        return await binding.contract.delete_entity(dapp_id, signer, overrides)

    # --------------------------------------------------
    # dApp reads
    # --------------------------------------------------

    async def get_all_dapps(self, include_ratings: bool = True) -> List[EnrichedDapp]:
        """All registered dApps, optionally with rating stats. Degrades per ``bulk_read_policy``."""
        binding = await self.ready()
        logger.debug("Fetching all dapps (with ratings: %s)", include_ratings)
        try:
            records = await binding.contract.get_all_registrations()
        except RateCasterError as e:
            if self.bulk_read_policy is ReadPolicy.FAIL_FAST:
                raise e.with_context("get_all_dapps") from e
            logger.warning("Failed to fetch dapps, returning empty listing: %s", e)
            return []
        return await binding.aggregator.enrich_listing(
            records, include_ratings=include_ratings, policy=self.bulk_read_policy,
        )

    async def get_dapp(self, dapp_id: str, include_ratings: bool = True) -> Optional[EnrichedDapp]:
        """One dApp, or None when it is not registered."""
        require_non_empty(dapp_id, "dappId")
        binding = await self.ready()
        logger.debug("Fetching dapp with ID: %s (with ratings: %s)", dapp_id, include_ratings)
        record = await binding.contract.get_registration(dapp_id)
        if record is None:
            return None
        enriched = await binding.aggregator.enrich_listing(
            [record], include_ratings=include_ratings, policy=ReadPolicy.FAIL_FAST,
        )
        return enriched[0]

    async def is_dapp_registered(self, dapp_id: str) -> bool:
        require_non_empty(dapp_id, "dappId")
        binding = await self.ready()
        return await binding.contract.is_registered(dapp_id)

    # --------------------------------------------------
    # Review reads
    # --------------------------------------------------

    async def get_project_reviews(self, project_id: str) -> List[DappReview]:
        require_non_empty(project_id, "projectId")
        binding = await self.ready()
        return await binding.aggregator.reviews_for(project_id)

    async def get_user_reviews(self, user_address: str) -> List[DappReview]:
        validate_address(user_address, "user address")
        binding = await self.ready()
        try:
            rows = await binding.index.fetch_all(
                GET_USER_REVIEWS, REVIEWS_COLLECTION, {"rater": user_address.lower()},
            )
            reviews = parse_reviews(rows)
        except RateCasterError as e:
            raise e.with_context("get_user_reviews", user_address) from e
        logger.debug("Found %d reviews by user %s", len(reviews), user_address)
        return reviews

    async def get_project_stats(self, project_id: str) -> ProjectStats:
        require_non_empty(project_id, "projectId")
        binding = await self.ready()
        return await binding.aggregator.stats_for(project_id)

    async def get_all_reviews(self) -> List[DappReview]:
        """Every indexed review. Degrades per ``bulk_read_policy``."""
        binding = await self.ready()
        logger.debug("Fetching all reviews")
        try:
            rows = await binding.index.fetch_all(GET_ALL_REVIEWS, REVIEWS_COLLECTION)
            reviews = parse_reviews(rows)
        except RateCasterError as e:
            if self.bulk_read_policy is ReadPolicy.FAIL_FAST:
                raise e.with_context("get_all_reviews") from e
            logger.warning("Failed to fetch reviews, returning empty list: %s", e)
            return []
        logger.debug("Retrieved %d total reviews", len(reviews))
        return reviews

    async def has_user_rated_project(self, user_address: str, project_id: str) -> bool:
        validate_address(user_address, "user address")
        require_non_empty(project_id, "projectId")
        binding = await self.ready()
        return await binding.contract.has_rated(user_address, project_id)

    async def get_user_rating_count(self, user_address: str) -> int:
        validate_address(user_address, "user address")
        binding = await self.ready()
        return await binding.contract.user_rating_count(user_address)

    async def get_project_rating_count(self, project_id: str) -> int:
        require_non_empty(project_id, "projectId")
        binding = await self.ready()
        return await binding.contract.rating_count_for(project_id)

    async def get_rating_fee(self) -> int:
        binding = await self.ready()
        return await binding.contract.rating_fee()

    async def get_registration_fee(self) -> int:
        binding = await self.ready()
        return await binding.contract.registration_fee()

    # --------------------------------------------------
    # Network info
    # --------------------------------------------------

    async def get_current_chain(self) -> NetworkParameters:
        return (await self.ready()).network

    async def get_contract_address(self) -> str:
        return (await self.ready()).network.contract_address

    async def get_explorer_url(self) -> str:
        return (await self.ready()).network.explorer

    async def validate_connection(self) -> bool:
        """True when the connection still reports the chain this client is bound to."""
        binding = await self.ready()
        try:
            chain_id = await binding.connection.get_network_identity()
        except RateCasterError as e:
            raise e.with_context("validate_connection") from e
        valid = int(chain_id) == binding.network.chain_id
        logger.debug(
            "Connection validation %s: expected chain ID %s, got %s",
            "succeeded" if valid else "failed", binding.network.chain_id, chain_id,
        )
        return valid

    # --------------------------------------------------
    # Live reviews
    # --------------------------------------------------

    async def listen_to_reviews(self, callback: Callable[[DappReview], Any]) -> ReviewListener:
        binding = await self.ready()
        await self.stop_listening()
        listener = ReviewListener(binding, callback, poll_interval=self.poll_interval)
        await listener.start()
        self._listener = listener
        return listener

    async def stop_listening(self) -> None:
        if self._listener is None:
            return
        await self._listener.stop()
        self._listener = None

    # --------------------------------------------------
    # Categories (static, no binding needed)
    # --------------------------------------------------

    @staticmethod
    def get_category_tree() -> List[Dict[str, Any]]:
        return get_category_tree()

    @staticmethod
    def get_all_categories() -> List[Dict[str, Any]]:
        return get_all_categories()

    @staticmethod
    def get_category_options() -> List[Dict[str, Any]]:
        return get_category_options()

    @staticmethod
    def get_category_name_by_id(category_id: int) -> str:
        return get_category_name_by_id(category_id)

    # --------------------------------------------------
    # Logging
    # --------------------------------------------------

    @staticmethod
    def set_log_level(level: Union[int, str]) -> None:
        if isinstance(level, str):
            level = level.upper()
        logging.getLogger(_ROOT_LOGGER).setLevel(level)
        logger.debug("Log level set to: %s", logging.getLevelName(logging.getLogger(_ROOT_LOGGER).level))

    @staticmethod
    def get_log_level() -> str:
        return logging.getLevelName(logging.getLogger(_ROOT_LOGGER).getEffectiveLevel())

# tests/conftest.py
"""
In-memory stand-ins for the chain connection and the GraphQL index.

FakeChain implements the same coroutine surface as ChainConnection and keys
registrations by keccak256(url), like the deployed contract. When it sees an
addDappRating submission it also appends a row to the attached FakeIndex,
standing in for the subgraph that would pick up the emitted event.
"""
import itertools

import pytest
from eth_account import Account

from ratecaster.errors import RemoteError
from ratecaster.hashing import canonicalize
from ratecaster.networks import NetworkParameters

POLYGON_ADDRESS = "0xD6E93AC22B754427077290d660442564BB7E6760"
AMOY_ADDRESS = "0xeF6b5d35874D7a83e78A8555d93999098A53547C"

TEST_NETWORKS = {
    137: NetworkParameters(
        chain_id=137,
        name="Polygon",
        graphql_url="https://index.test/polygon/api",
        contract_address=POLYGON_ADDRESS,
        explorer="https://polygonscan.com",
    ),
    80002: NetworkParameters(
        chain_id=80002,
        name="Polygon Amoy",
        graphql_url="https://index.test/amoy/api",
        contract_address=AMOY_ADDRESS,
        explorer="https://amoy.polygonscan.com",
    ),
}

RATING_FEE = 10 ** 15
REGISTRATION_FEE = 10 ** 16


# ────────────────────────────────────────────────────────────
# Index endpoint
# ────────────────────────────────────────────────────────────

class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeIndex:
    """A requests.Session look-alike answering dappRatingSubmitteds queries."""

    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.requests = []
        self.response = None  # forced FakeResponse
        self.error = None     # exception raised from post()

    def add_review(self, dapp_id, stars, rater="0x" + "ab" * 20, text="", attestation_id=None):
        n = len(self.rows) + 1
        uid = attestation_id or "0x%064x" % n
        row = {
            "id": uid,
            "attestationId": uid,
            "dappId": canonicalize(dapp_id).lower(),
            "starRating": stars,
            "reviewText": text,
            "rater": rater.lower(),
        }
        self.rows.append(row)
        return row

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response

        variables = (json or {}).get("variables") or {}
        rows = self.rows
        if "dappId" in variables:
            rows = [r for r in rows if r["dappId"] == variables["dappId"]]
        if "rater" in variables:
            rows = [r for r in rows if r["rater"] == variables["rater"]]
        skip = variables.get("skip", 0)
        first = variables.get("first", len(rows))
        page = rows[skip:skip + first]
        return FakeResponse(200, {"data": {"dappRatingSubmitteds": page}})


# ────────────────────────────────────────────────────────────
# Chain connection
# ────────────────────────────────────────────────────────────

class FakeChain:
    def __init__(self, chain_id=137, index=None):
        self.chain_id = chain_id
        self.index = index
        self.calls = []
        self.sent = []
        self.dapps = {}     # lower-case key -> Dapp struct tuple
        self.rated = set()  # (rater lower, key lower)
        self.rating_fee = RATING_FEE
        self.registration_fee = REGISTRATION_FEE
        self.head = 100
        self.logs = []
        self.failures = {}  # function / method name -> exception
        self._hashes = itertools.count(1)

    def _maybe_fail(self, name):
        err = self.failures.get(name)
        if err is not None:
            raise err

    def add_dapp(self, url, name="Example", category_id=412, owner="0x" + "cd" * 20):
        key = canonicalize(url)
        self.dapps[key.lower()] = (
            bytes.fromhex(key[2:]), name, "desc", url, url + "/logo.png", category_id, owner,
        )
        return key

    async def get_network_identity(self):
        self.calls.append(("get_network_identity",))
        self._maybe_fail("get_network_identity")
        return self.chain_id

    async def call(self, address, abi, function, *args):
        self.calls.append(("call", function) + args)
        self._maybe_fail(function)
        if function == "dappRatingFee":
            return self.rating_fee
        if function == "dappRegistrationFee":
            return self.registration_fee
        if function == "getDapp":
            struct = self.dapps.get(args[0].lower())
            if struct is None:
                raise RemoteError("execution reverted: Dapp not registered", step="call")
            return struct
        if function == "getAllDapps":
            return list(self.dapps.values())
        if function == "isDappRegistered":
            return args[0].lower() in self.dapps
        if function == "dappRatingsCount":
            return sum(1 for _, key in self.rated if key == args[0].lower())
        if function == "raterToProjectToRated":
            return (args[0].lower(), args[1].lower()) in self.rated
        if function == "raterToNumberOfRates":
            return sum(1 for rater, _ in self.rated if rater == args[0].lower())
        raise AssertionError(f"unexpected call {function}")

    async def submit(self, address, abi, function, args, signer, value=0, overrides=None):
        self.calls.append(("submit", function))
        self._maybe_fail("submit")
        self.sent.append({
            "address": address,
            "function": function,
            "args": list(args),
            "from": signer.address,
            "value": value,
            "overrides": overrides,
        })
        if function == "registerDapp":
            self.add_dapp(args[2], name=args[0], category_id=args[4], owner=signer.address)
        elif function == "addDappRating":
            key, stars, text = args
            self.rated.add((signer.address.lower(), key.lower()))
            if self.index is not None:
                self.index.add_review(key, stars, rater=signer.address, text=text)
        elif function == "deleteDapp":
            self.dapps.pop(args[0].lower(), None)
        return "0x%064x" % next(self._hashes)

    async def await_confirmation(self, tx_hash, timeout=None):
        self.calls.append(("await_confirmation", tx_hash))
        return {"transactionHash": tx_hash, "status": 1}

    async def block_number(self):
        self.calls.append(("block_number",))
        self._maybe_fail("block_number")
        return self.head

    async def block_timestamp(self, block_number):
        self._maybe_fail("block_timestamp")
        return 1_700_000_000 + block_number

    async def get_events(self, address, abi, event, from_block, to_block):
        self.calls.append(("get_events", event, from_block, to_block))
        self._maybe_fail("get_events")
        return [log for log in self.logs if from_block <= log["blockNumber"] <= to_block]

    def emit_rating(self, block, dapp_url, stars, rater="0x" + "ef" * 20, text="", uid=None):
        uid = uid or bytes.fromhex("%064x" % (len(self.logs) + 1))
        self.logs.append({
            "blockNumber": block,
            "args": {
                "attestationId": uid,
                "dappId": bytes.fromhex(canonicalize(dapp_url)[2:]),
                "starRating": stars,
                "reviewText": text,
                "rater": rater,
            },
        })


# ────────────────────────────────────────────────────────────
# Fixtures
# ────────────────────────────────────────────────────────────

@pytest.fixture
def index():
    return FakeIndex()


@pytest.fixture
def chain(index):
    return FakeChain(index=index)


@pytest.fixture
def signer():
    return Account.from_key("0x" + "11" * 32)


@pytest.fixture
def polygon():
    return TEST_NETWORKS[137]

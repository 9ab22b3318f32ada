# ratecaster/chain/abi.py
"""
ABI of the DappRatingSystem contract.

A compiled artifact (any JSON file with an "abi" key) can be pointed to with
RATECASTER_ABI_PATH; otherwise the inline fragment below is used. The inline
fragment only lists what the client actually calls or listens to.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import config

logger = logging.getLogger(__name__)


def load_abi(path: str) -> Optional[List[Dict[str, Any]]]:
    if not path:
        return None
    artifact = Path(path)
    if not artifact.exists():
        logger.warning("ABI artifact not found at %s, using inline ABI", artifact)
        return None
    with artifact.open() as f:
        data = json.load(f)
    abi = data.get("abi") if isinstance(data, dict) else data
    if not abi:
        raise ValueError(f"No 'abi' key in {artifact}")
    return abi


def _fn(name, inputs, outputs=(), mutability="view"):
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
        "stateMutability": mutability,
    }


_DAPP_STRUCT = {
    "name": "",
    "type": "tuple",
    "components": [
        {"name": "dappId", "type": "bytes32"},
        {"name": "name", "type": "string"},
        {"name": "description", "type": "string"},
        {"name": "url", "type": "string"},
        {"name": "imageUrl", "type": "string"},
        {"name": "categoryId", "type": "uint256"},
        {"name": "owner", "type": "address"},
    ],
}

_DAPP_FIELDS = [
    ("_name", "string"),
    ("_description", "string"),
    ("_url", "string"),
    ("_imageURL", "string"),
    ("_categoryId", "uint256"),
]

INLINE_ABI: List[Dict[str, Any]] = [
    # writes
    _fn("addDappRating",
        [("dappId", "bytes32"), ("starRating", "uint8"), ("reviewText", "string")],
        [("", "bytes32")], "payable"),
    _fn("revokeDappRating", [("ratingUid", "bytes32")], (), "nonpayable"),
    _fn("registerDapp", _DAPP_FIELDS, (), "payable"),
    _fn("updateDapp", [("_dappId", "bytes32")] + _DAPP_FIELDS, (), "nonpayable"),
    _fn("deleteDapp", [("_dappId", "bytes32")], (), "nonpayable"),
    # views
    _fn("dappRatingFee", [], [("", "uint256")]),
    _fn("dappRegistrationFee", [], [("", "uint256")]),
    _fn("isDappRegistered", [("dappId", "bytes32")], [("", "bool")]),
    _fn("dappRatingsCount", [("", "bytes32")], [("", "uint256")]),
    _fn("raterToProjectToRated", [("", "address"), ("", "bytes32")], [("", "bool")]),
    _fn("raterToNumberOfRates", [("", "address")], [("", "uint256")]),
    {
        "type": "function",
        "name": "getDapp",
        "inputs": [{"name": "dappId", "type": "bytes32"}],
        "outputs": [_DAPP_STRUCT],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "getAllDapps",
        "inputs": [],
        "outputs": [dict(_DAPP_STRUCT, type="tuple[]")],
        "stateMutability": "view",
    },
    # events
    {
        "type": "event",
        "name": "DappRatingSubmitted",
        "anonymous": False,
        "inputs": [
            {"name": "rater", "type": "address", "indexed": True},
            {"name": "attestationId", "type": "bytes32", "indexed": True},
            {"name": "dappId", "type": "bytes32", "indexed": True},
            {"name": "starRating", "type": "uint8", "indexed": False},
            {"name": "reviewText", "type": "string", "indexed": False},
        ],
    },
    # custom errors
    {"type": "error", "name": "InsufficientFee", "inputs": []},
    {"type": "error", "name": "InvalidDappId", "inputs": []},
    {"type": "error", "name": "InvalidRatingUID", "inputs": []},
    {"type": "error", "name": "InvalidStarRating", "inputs": []},
    {"type": "error", "name": "NotDappOwner", "inputs": []},
]

DAPP_RATING_ABI = load_abi(config.ABI_PATH) or INLINE_ABI

RATING_SUBMITTED_EVENT = "DappRatingSubmitted"

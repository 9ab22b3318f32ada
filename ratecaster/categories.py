# ratecaster/categories.py
"""
Two-level dApp category table.

Ids are grouped by hundreds: 400 is the "DeFi" group header and 401-499 are
its subcategories. Category data is display-only, so lookups of unknown ids
return a sentinel instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

UNKNOWN_CATEGORY = "Unknown Category"

CATEGORY_NAMES: Dict[int, str] = {
    # B2B
    100: "B2B",
    101: "Decentralised Storage",
    102: "Decentralised Compute",
    103: "Automation/Bots",
    104: "On Ramp/Off Ramp",
    105: "Dev Tools",
    106: "Explorer",
    107: "Wallet",
    108: "Infrastructure",
    199: "Others (B2B)",
    # Tools
    200: "Tools",
    201: "CEX",
    # DApps
    300: "DApps",
    301: "DAO",
    # DeFi
    400: "DeFi",
    401: "Betting",
    402: "Lending",
    403: "Prediction Market",
    404: "Stablecoin",
    405: "Yield Aggregator",
    406: "Synthetics",
    407: "Insurance",
    408: "Reserve Currency",
    409: "Oracle",
    410: "Lottery",
    411: "Staking",
    412: "DEX",
    413: "Bridge",
    414: "Yield",
    415: "Launchpad",
    416: "Tooling",
    417: "Derivatives",
    418: "Payments",
    419: "Indexes",
    420: "Privacy",
    # Social
    500: "Social",
    501: "Messaging",
    502: "Notification",
    503: "Social Network",
    504: "Social Token",
    # NFT
    600: "NFT",
    601: "Game",
    602: "Creator/Brand (Art/Music/Fashion)",
    603: "Middleware Offerings",
    604: "PFP+Game",
    605: "PFP Project/Collectibles",
    606: "Marketplace",
    # Gaming
    700: "Gaming",
    701: "Trading Card Game",
    702: "Survival",
    703: "Strategy",
    704: "Simulation",
    705: "Shooter",
    706: "RPG",
    707: "Rhythm Action",
    708: "Platformer",
    709: "MMO",
    710: "Metaverse",
    711: "Fighting",
    712: "CCG",
    713: "Battle Royale",
    714: "Adventure",
    715: "Arcade",
    716: "Cards/Board/Trading",
    717: "Gambling",
    718: "Crypto Farming",
    719: "Puzzle/Party Games",
    720: "Racing",
    721: "Sandbox/Open World",
    722: "Sports",
    723: "Tower Defence",
    799: "Others (Gaming)",
}

MAIN_CATEGORY_IDS = (100, 200, 300, 400, 500, 600, 700)


@dataclass(frozen=True)
class CategoryInfo:
    id: int
    name: str
    group_name: str

    @property
    def known(self) -> bool:
        return self.name != UNKNOWN_CATEGORY


def main_category_id(category_id: int) -> int:
    return (int(category_id) // 100) * 100


def is_known_category(category_id: Any) -> bool:
    return isinstance(category_id, int) and not isinstance(category_id, bool) \
        and category_id in CATEGORY_NAMES


def resolve_category(category_id: int) -> CategoryInfo:
    try:
        cid = int(category_id)
    except (TypeError, ValueError):
        return CategoryInfo(id=-1, name=UNKNOWN_CATEGORY, group_name=UNKNOWN_CATEGORY)
    name = CATEGORY_NAMES.get(cid)
    if name is None:
        return CategoryInfo(id=cid, name=UNKNOWN_CATEGORY, group_name=UNKNOWN_CATEGORY)
    group = CATEGORY_NAMES.get(main_category_id(cid), UNKNOWN_CATEGORY)
    return CategoryInfo(id=cid, name=name, group_name=group)


def get_all_categories() -> List[Dict[str, Any]]:
    """Flat list sorted by group, then name."""
    out = []
    for cid, name in CATEGORY_NAMES.items():
        group = CATEGORY_NAMES.get(main_category_id(cid), "Other")
        out.append({"id": cid, "name": name, "group": group})
    out.sort(key=lambda c: (c["group"].lower(), c["name"].lower()))
    return out


def get_category_tree() -> List[Dict[str, Any]]:
    tree = []
    for main_id in MAIN_CATEGORY_IDS:
        subs = [
            {"id": cid, "name": name}
            for cid, name in CATEGORY_NAMES.items()
            if cid != main_id and main_category_id(cid) == main_id
        ]
        subs.sort(key=lambda c: c["name"].lower())
        tree.append({
            "id": main_id,
            "name": CATEGORY_NAMES[main_id],
            "subcategories": subs,
        })
    return tree


def get_category_options() -> List[Dict[str, Any]]:
    """Select-box options; group headers (x00) are not selectable."""
    return [
        {"value": c["id"], "label": c["name"], "group": c["group"]}
        for c in get_all_categories()
        if c["id"] % 100 != 0
    ]


def get_category_name_by_id(category_id: int) -> str:
    info = resolve_category(category_id)
    if not info.known:
        return f"Unknown ({category_id})"
    return f"{info.name} ({info.group_name})"

# tests/test_categories.py
from ratecaster.categories import (
    CATEGORY_NAMES,
    MAIN_CATEGORY_IDS,
    UNKNOWN_CATEGORY,
    get_all_categories,
    get_category_name_by_id,
    get_category_options,
    get_category_tree,
    is_known_category,
    resolve_category,
)


class TestResolveCategory:
    def test_defi_subcategory(self):
        info = resolve_category(412)
        assert info.name == "DEX"
        assert info.group_name == "DeFi"
        assert info.known

    def test_unknown_id_returns_sentinel(self):
        info = resolve_category(999999)
        assert info.name == UNKNOWN_CATEGORY
        assert info.group_name == UNKNOWN_CATEGORY
        assert not info.known

    def test_group_header_resolves_to_itself(self):
        info = resolve_category(400)
        assert info.name == "DeFi"
        assert info.group_name == "DeFi"

    def test_garbage_input_does_not_raise(self):
        assert resolve_category("not-a-number").id == -1


class TestIsKnownCategory:
    def test_known(self):
        assert is_known_category(412)

    def test_unknown_and_wrong_types(self):
        assert not is_known_category(999999)
        assert not is_known_category("412")
        assert not is_known_category(True)


class TestListings:
    def test_all_categories_cover_table(self):
        cats = get_all_categories()
        assert len(cats) == len(CATEGORY_NAMES)
        assert {"id": 412, "name": "DEX", "group": "DeFi"} in cats

    def test_all_categories_sorted_by_group_then_name(self):
        cats = get_all_categories()
        keys = [(c["group"].lower(), c["name"].lower()) for c in cats]
        assert keys == sorted(keys)

    def test_tree_has_every_group(self):
        tree = get_category_tree()
        assert [node["id"] for node in tree] == list(MAIN_CATEGORY_IDS)
        defi = next(node for node in tree if node["id"] == 400)
        assert {"id": 412, "name": "DEX"} in defi["subcategories"]
        assert all(sub["id"] != 400 for sub in defi["subcategories"])

    def test_options_exclude_group_headers(self):
        values = [opt["value"] for opt in get_category_options()]
        assert 412 in values
        assert not any(v % 100 == 0 for v in values)

    def test_name_by_id(self):
        assert get_category_name_by_id(412) == "DEX (DeFi)"
        assert get_category_name_by_id(999999) == "Unknown (999999)"

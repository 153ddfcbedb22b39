import pytest

from infinistairs.core.rng import RNG
from infinistairs.items import DEFAULT_CATALOG, Item, ItemKind, ItemTable


def test_default_catalog_identities():
    table = ItemTable()
    assert table.identities() == ["cooper", "iron", "gold", "emerald", "dia", "up", "plane", "rocket"]
    assert table.total_rarity == 36


def test_sample_returns_copy_not_catalog_entry():
    table = ItemTable()
    rng = RNG(seed=3)
    for _ in range(50):
        item = table.sample(rng)
        assert item in table.items
        assert all(item is not entry for entry in table.items)


def test_weighted_distribution_bias():
    rng = RNG(seed=42)
    table = ItemTable.of([
        Item(ItemKind.SCORE, 50, "rare", rarity=1),
        Item(ItemKind.SCORE, 5, "common", rarity=9),
    ])
    trials = 10_000
    rare = sum(1 for _ in range(trials) if table.sample(rng).identity == "rare")
    p_rare = rare / trials
    # Expect around 10% (1 / (1 + 9)), allow generous tolerance for randomness
    assert 0.07 <= p_rare <= 0.13, f"p_rare={p_rare} out of expected range"


def test_table_rejects_bad_entries():
    with pytest.raises(ValueError):
        ItemTable.of([Item(ItemKind.SCORE, 5, "a"), Item(ItemKind.JUMP, 10, "a")])
    with pytest.raises(ValueError):
        ItemTable.of([Item(ItemKind.SCORE, 5, "a", rarity=0)])


def test_sample_from_empty_table_raises():
    with pytest.raises(ValueError):
        ItemTable(items=[]).sample(RNG(seed=1))


def test_feedback_text():
    assert Item(ItemKind.SCORE, 10, "iron").feedback_text() == "+10 points!"
    assert Item(ItemKind.JUMP, 30, "plane").feedback_text() == "+30 JUMP!"


def test_items_are_immutable():
    item = DEFAULT_CATALOG[0]
    with pytest.raises(AttributeError):
        item.magnitude = 99  # type: ignore[misc]

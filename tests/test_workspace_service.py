import asyncio

import pytest
from pymongo.errors import ConnectionFailure

from flashdeck.errors import (
    CapacityExceededError,
    InvalidArgumentError,
    NotEmptyError,
    NotFoundError,
    TransientError,
    UnauthenticatedError,
)
from flashdeck.models.workspace_models import Card, EntryKind
from flashdeck.services.workspace_service import WorkspaceService, normalize_cards, sort_for_display

from .conftest import FakeCollection

OWNER = "user_123"


# --- Capacity ---


@pytest.mark.asyncio
async def test_folder_limit_counts_every_folder_of_the_owner(workspace):
    parent = await workspace.create_folder("Parent", None, OWNER)
    for i in range(48):
        await workspace.create_folder(f"Root {i}", None, OWNER)
    await workspace.create_folder("Nested", parent.id, OWNER)

    with pytest.raises(CapacityExceededError) as exc_info:
        await workspace.create_folder("One too many", None, OWNER)

    assert exc_info.value.limit == 50
    assert exc_info.value.status_code == 409
    assert "50" in exc_info.value.message


@pytest.mark.asyncio
async def test_folder_limit_is_per_owner(workspace):
    for i in range(50):
        await workspace.create_folder(f"Folder {i}", None, OWNER)

    other = await workspace.create_folder("Mine", None, "user_456")
    assert other.owner_id == "user_456"


@pytest.mark.asyncio
async def test_deck_limit_is_per_folder(workspace, sample_cards):
    folder = await workspace.create_folder("Biology", None, OWNER)
    for i in range(75):
        await workspace.create_deck(f"Deck {i}", sample_cards, None, OWNER)

    with pytest.raises(CapacityExceededError) as exc_info:
        await workspace.create_deck("Deck 76", sample_cards, None, OWNER)
    assert exc_info.value.limit == 75

    deck = await workspace.create_deck("Cells", sample_cards, folder.id, OWNER)
    assert deck.folder_id == folder.id


# --- Validation ---


@pytest.mark.asyncio
async def test_create_folder_rejects_blank_name(workspace):
    with pytest.raises(InvalidArgumentError):
        await workspace.create_folder("   ", None, OWNER)


@pytest.mark.asyncio
async def test_create_folder_unknown_parent(workspace):
    with pytest.raises(NotFoundError) as exc_info:
        await workspace.create_folder("Orphan", "missing-id", OWNER)
    assert exc_info.value.entry_id == "missing-id"


@pytest.mark.asyncio
async def test_create_deck_unknown_folder(workspace, sample_cards):
    with pytest.raises(NotFoundError):
        await workspace.create_deck("Cells", sample_cards, "missing-id", OWNER)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "topic, cards",
    [
        ("", [{"question": "q", "answer": "a"}]),
        ("x" * 251, [{"question": "q", "answer": "a"}]),
        ("Empty", []),
        ("Too many", [{"question": f"q{i}", "answer": "a"} for i in range(26)]),
        ("Blank answer", [{"question": "q", "answer": "  "}]),
    ],
)
async def test_create_deck_rejects_invalid_input(workspace, topic, cards):
    with pytest.raises(InvalidArgumentError):
        await workspace.create_deck(topic, cards, None, OWNER)
    assert (await workspace.list_children(None, OWNER)).decks == []


@pytest.mark.asyncio
async def test_create_deck_accepts_max_cards_and_trims_topic(workspace):
    cards = [{"question": f"q{i}", "answer": f"a{i}"} for i in range(25)]
    deck = await workspace.create_deck("  Arithmetic  ", cards, None, OWNER)

    assert deck.topic == "Arithmetic"
    assert len(deck.cards) == 25
    assert deck.cards[0] == Card(question="q0", answer="a0")


@pytest.mark.asyncio
async def test_blank_owner_is_unauthenticated(workspace):
    with pytest.raises(UnauthenticatedError):
        await workspace.create_folder("Biology", None, " ")
    with pytest.raises(UnauthenticatedError):
        await workspace.list_children(None, "")


def test_normalize_cards_keeps_card_instances():
    card = Card(question="q", answer="a")
    assert normalize_cards([card, {"question": "q2", "answer": "a2"}], 25) == [
        card,
        Card(question="q2", answer="a2"),
    ]


# --- Listing & ordering ---


@pytest.mark.asyncio
async def test_list_children_orders_favorites_then_names(workspace):
    for name in ["b", "A", "a", "B"]:
        await workspace.create_folder(name, None, OWNER)
    contents = await workspace.list_children(None, OWNER)
    b_id = next(f.id for f in contents.folders if f.name == "b")
    await workspace.toggle_favorite(b_id, EntryKind.FOLDER, OWNER)

    contents = await workspace.list_children(None, OWNER)

    assert [f.name for f in contents.folders] == ["b", "A", "B", "a"]


@pytest.mark.asyncio
async def test_list_children_keeps_creation_order_for_equal_names(workspace, sample_cards):
    first = await workspace.create_deck("Same", sample_cards, None, OWNER)
    second = await workspace.create_deck("Same", sample_cards, None, OWNER)

    contents = await workspace.list_children(None, OWNER)

    assert [d.id for d in contents.decks] == [first.id, second.id]


@pytest.mark.asyncio
async def test_list_children_only_direct_children(workspace, sample_cards):
    parent = await workspace.create_folder("Parent", None, OWNER)
    child = await workspace.create_folder("Child", parent.id, OWNER)
    await workspace.create_folder("Grandchild", child.id, OWNER)
    await workspace.create_deck("Root deck", sample_cards, None, OWNER)
    await workspace.create_deck("Parent deck", sample_cards, parent.id, OWNER)

    root = await workspace.list_children(None, OWNER)
    inside = await workspace.list_children(parent.id, OWNER)

    assert [f.name for f in root.folders] == ["Parent"]
    assert [d.topic for d in root.decks] == ["Root deck"]
    assert [f.name for f in inside.folders] == ["Child"]
    assert [d.topic for d in inside.decks] == ["Parent deck"]


def test_sort_for_display_is_stable():
    from flashdeck.models.workspace_models import Folder

    first = Folder(owner_id=OWNER, name="Same")
    fav = Folder(owner_id=OWNER, name="Zed", is_favorite=True)
    second = Folder(owner_id=OWNER, name="Same")

    assert sort_for_display([first, fav, second], "name") == [fav, first, second]


# --- Path resolution ---


@pytest.mark.asyncio
async def test_resolve_path_root_first(workspace):
    a = await workspace.create_folder("A", None, OWNER)
    b = await workspace.create_folder("B", a.id, OWNER)
    c = await workspace.create_folder("C", b.id, OWNER)

    path_c = await workspace.resolve_path(c.id, OWNER)
    path_b = await workspace.resolve_path(b.id, OWNER)

    assert [f.id for f in path_c] == [a.id, b.id, c.id]
    assert path_b == path_c[:-1]
    assert await workspace.resolve_path(None, OWNER) == []


@pytest.mark.asyncio
async def test_resolve_path_truncates_at_missing_ancestor(workspace, fake_db):
    folders = fake_db.get_collection("folders")
    folders.documents.append({"_id": "orphan", "owner_id": OWNER, "name": "Orphan", "parent_id": "ghost"})
    child = await workspace.create_folder("Child", "orphan", OWNER)

    path = await workspace.resolve_path(child.id, OWNER)

    assert [f.id for f in path] == ["orphan", child.id]


@pytest.mark.asyncio
async def test_resolve_path_stops_on_cycle(workspace, fake_db):
    folders = fake_db.get_collection("folders")
    folders.documents.extend(
        [
            {"_id": "x", "owner_id": OWNER, "name": "X", "parent_id": "y"},
            {"_id": "y", "owner_id": OWNER, "name": "Y", "parent_id": "x"},
        ]
    )

    path = await workspace.resolve_path("x", OWNER)

    assert [f.id for f in path] == ["y", "x"]


@pytest.mark.asyncio
async def test_resolve_path_unknown_folder_is_empty(workspace):
    assert await workspace.resolve_path("missing", OWNER) == []


# --- Deletion ---


@pytest.mark.asyncio
async def test_delete_folder_requires_empty(workspace, sample_cards):
    parent = await workspace.create_folder("Parent", None, OWNER)
    child = await workspace.create_folder("Child", parent.id, OWNER)
    deck = await workspace.create_deck("Cells", sample_cards, child.id, OWNER)

    with pytest.raises(NotEmptyError):
        await workspace.delete_folder(parent.id, OWNER)
    with pytest.raises(NotEmptyError):
        await workspace.delete_folder(child.id, OWNER)

    assert await workspace.delete_deck(deck.id, OWNER) is True
    await workspace.delete_folder(child.id, OWNER)
    await workspace.delete_folder(parent.id, OWNER)

    assert (await workspace.list_children(None, OWNER)).is_empty()


@pytest.mark.asyncio
async def test_delete_missing_entries(workspace):
    with pytest.raises(NotFoundError):
        await workspace.delete_folder("missing", OWNER)
    assert await workspace.delete_deck("missing", OWNER) is False


# --- Rename & favorite ---


@pytest.mark.asyncio
async def test_rename_folder_and_deck(workspace, sample_cards):
    folder = await workspace.create_folder("Old", None, OWNER)
    deck = await workspace.create_deck("Old topic", sample_cards, folder.id, OWNER)

    await workspace.rename_folder(folder.id, "New", OWNER)
    await workspace.rename_deck(deck.id, "New topic", OWNER)

    assert (await workspace.resolve_path(folder.id, OWNER))[0].name == "New"
    assert (await workspace.get_deck(deck.id, OWNER)).topic == "New topic"


@pytest.mark.asyncio
async def test_rename_validation_and_missing(workspace):
    folder = await workspace.create_folder("Old", None, OWNER)
    with pytest.raises(InvalidArgumentError):
        await workspace.rename_folder(folder.id, "", OWNER)
    with pytest.raises(NotFoundError):
        await workspace.rename_folder("missing", "New", OWNER)
    with pytest.raises(NotFoundError):
        await workspace.rename_deck("missing", "New", OWNER)


@pytest.mark.asyncio
async def test_toggle_favorite_flips_every_call(workspace, sample_cards):
    deck = await workspace.create_deck("Cells", sample_cards, None, OWNER)

    assert await workspace.toggle_favorite(deck.id, EntryKind.DECK, OWNER) is True
    assert (await workspace.get_deck(deck.id, OWNER)).is_favorite is True
    assert await workspace.toggle_favorite(deck.id, "deck", OWNER) is False

    with pytest.raises(NotFoundError):
        await workspace.toggle_favorite("missing", EntryKind.FOLDER, OWNER)


@pytest.mark.asyncio
async def test_concurrent_toggles_each_flip_once(workspace, sample_cards):
    deck = await workspace.create_deck("Cells", sample_cards, None, OWNER)

    results = await asyncio.gather(
        workspace.toggle_favorite(deck.id, EntryKind.DECK, OWNER),
        workspace.toggle_favorite(deck.id, EntryKind.DECK, OWNER),
    )

    assert sorted(results) == [False, True]
    assert (await workspace.get_deck(deck.id, OWNER)).is_favorite is False

    results = await asyncio.gather(*(workspace.toggle_favorite(deck.id, EntryKind.DECK, OWNER) for _ in range(3)))

    assert sorted(results) == [False, True, True]
    assert (await workspace.get_deck(deck.id, OWNER)).is_favorite is True


@pytest.mark.asyncio
async def test_toggle_favorite_of_another_owner_is_not_found(workspace):
    folder = await workspace.create_folder("Private", None, OWNER)

    with pytest.raises(NotFoundError):
        await workspace.toggle_favorite(folder.id, EntryKind.FOLDER, "user_999")

    assert (await workspace.list_children(None, OWNER)).folders[0].is_favorite is False


# --- Owner isolation ---


@pytest.mark.asyncio
async def test_other_owners_entries_are_invisible(workspace, sample_cards):
    folder = await workspace.create_folder("Private", None, OWNER)
    deck = await workspace.create_deck("Secret", sample_cards, folder.id, OWNER)
    intruder = "user_999"

    assert (await workspace.list_children(None, intruder)).is_empty()
    assert await workspace.resolve_path(folder.id, intruder) == []
    with pytest.raises(NotFoundError):
        await workspace.get_deck(deck.id, intruder)
    with pytest.raises(NotFoundError):
        await workspace.create_deck("Sneaky", sample_cards, folder.id, intruder)
    with pytest.raises(NotFoundError):
        await workspace.rename_folder(folder.id, "Mine now", intruder)
    with pytest.raises(NotFoundError):
        await workspace.delete_folder(folder.id, intruder)
    assert await workspace.delete_deck(deck.id, intruder) is False

    assert (await workspace.get_deck(deck.id, OWNER)).topic == "Secret"


# --- Store failures ---


class SlowCollection(FakeCollection):
    async def count_documents(self, *args, **kwargs):
        await asyncio.sleep(1)
        return 0


class DisconnectedCollection(FakeCollection):
    async def find_one(self, *args, **kwargs):
        raise ConnectionFailure("connection reset")


@pytest.mark.asyncio
async def test_store_timeout_surfaces_as_transient(fake_db):
    fake_db.collections["folders"] = SlowCollection("folders")
    service = WorkspaceService(database=fake_db, timeout=0.01)

    with pytest.raises(TransientError) as exc_info:
        await service.create_folder("Biology", None, OWNER)

    assert exc_info.value.retryable is True
    assert fake_db.collections["folders"].documents == []


@pytest.mark.asyncio
async def test_connection_failure_surfaces_as_transient(fake_db):
    fake_db.collections["decks"] = DisconnectedCollection("decks")
    service = WorkspaceService(database=fake_db, timeout=1.0)

    with pytest.raises(TransientError):
        await service.get_deck("any", OWNER)

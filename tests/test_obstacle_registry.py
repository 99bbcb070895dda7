"""Behaviour of the obstacle registry: create, list, delete and load."""

from __future__ import annotations

import threading

import pytest

from fakes import FakeImageProvider, FakeLocationProvider, MemoryObstacleStore, make_obstacle
from route_obstacles.domain.errors import (
    ObstacleLoadError,
    ObstaclePersistError,
    ObstacleValidationError,
)
from route_obstacles.domain.models.obstacle import SENTINEL_POSITION, ImageSource
from route_obstacles.domain.services.obstacle_registry import ObstacleRegistry
from route_obstacles.infrastructure.repositories.key_value_obstacle_store import (
    KeyValueObstacleStore,
)
from route_obstacles.infrastructure.storage.json_file_key_value_store import (
    JsonFileKeyValueStore,
)


def test_create_then_list_contains_new_obstacle(registry, store):
    created = registry.create("Pole", "Low overhead cable")

    assert registry.list() == (created,)
    assert created.title == "Pole"
    assert created.description == "Low overhead cable"
    assert created.image_uri is None
    assert store.saved == [created]


def test_scenario_location_granted_library_cancelled(store, clock):
    location = FakeLocationProvider()
    images = FakeImageProvider(outcome="cancelled")
    registry = ObstacleRegistry(store, location, images, clock=clock)

    created = registry.create("Pole", "Low overhead cable", ImageSource.LIBRARY)

    assert created.title == "Pole"
    assert created.latitude == 48.85
    assert created.longitude == 2.35
    assert created.image_uri is None
    assert images.calls == ["library"]
    assert registry.list() == (created,)


def test_ids_are_unique_even_within_the_same_millisecond(registry, clock):
    first = registry.create("A", "first")
    second = registry.create("B", "second")
    third = registry.create("C", "third")

    ids = [first.id, second.id, third.id]
    assert len(set(ids)) == 3
    assert first.id == str(int(clock.now * 1000))


def test_ids_follow_the_clock(registry, clock):
    first = registry.create("A", "first")
    clock.now += 5
    second = registry.create("B", "second")

    assert int(second.id) - int(first.id) == 5000


def test_list_preserves_insertion_order(registry, clock):
    titles = ["one", "two", "three"]
    for title in titles:
        registry.create(title, "desc")
        clock.now -= 10

    assert [o.title for o in registry.list()] == titles


@pytest.mark.parametrize(
    "title, description",
    [("", "desc"), ("title", ""), ("   ", "desc"), ("title", "\t\n"), (None, "desc")],
)
def test_blank_fields_are_rejected_before_any_side_effect(
    registry, store, location, images, title, description
):
    registry.create("Existing", "kept")
    before = registry.list()
    writes = store.writes

    with pytest.raises(ObstacleValidationError):
        registry.create(title, description, ImageSource.CAMERA)

    assert registry.list() == before
    assert store.writes == writes
    assert location.calls == 1
    assert images.calls == []


def test_fields_are_stripped(registry):
    created = registry.create("  Bridge ", " Height 3.2m\n")

    assert created.title == "Bridge"
    assert created.description == "Height 3.2m"


@pytest.mark.parametrize("outcome", ["denied", "error"])
def test_location_failure_falls_back_to_sentinel(store, images, clock, outcome):
    registry = ObstacleRegistry(
        store, FakeLocationProvider(outcome=outcome), images, clock=clock
    )

    created = registry.create("Gate", "Closed at night")

    assert created.latitude == 0
    assert created.longitude == 0
    assert created.position == SENTINEL_POSITION
    assert not created.has_position
    assert registry.list() == (created,)


@pytest.mark.parametrize("outcome", ["denied", "cancelled", "error"])
def test_image_failure_creates_obstacle_without_image(store, location, clock, outcome):
    images = FakeImageProvider(outcome=outcome)
    registry = ObstacleRegistry(store, location, images, clock=clock)

    created = registry.create("Tree", "Fallen across lane", ImageSource.CAMERA)

    assert created.image_uri is None
    assert images.calls == ["camera"]
    assert store.saved == [created]


def test_image_reference_is_kept(registry, images):
    created = registry.create("Sign", "Blocks the verge", ImageSource.LIBRARY)

    assert created.image_uri == images.uri
    assert created.to_record()["imageUri"] == images.uri


def test_no_image_requested_does_not_touch_image_provider(registry, images):
    registry.create("Sign", "Blocks the verge", ImageSource.NONE)

    assert images.calls == []


def test_create_persist_failure_rolls_back_and_discards_image(registry, store, images):
    existing = registry.create("Existing", "kept")
    store.fail_writes = True

    with pytest.raises(ObstaclePersistError):
        registry.create("New", "lost", ImageSource.CAMERA)

    assert registry.list() == (existing,)
    assert store.saved == [existing]
    assert images.discarded == [images.uri]


def test_delete_removes_only_matching_obstacle(clock):
    a = make_obstacle("A")
    b = make_obstacle("B", image_uri="/images/b.jpg")
    store = MemoryObstacleStore([a, b])
    images = FakeImageProvider()
    registry = ObstacleRegistry(store, FakeLocationProvider(), images, clock=clock)
    registry.load()

    removed = registry.delete("A")

    assert removed == a
    assert registry.list() == (b,)
    assert registry.list()[0].title == "Obstacle B"
    assert store.saved == [b]
    assert images.discarded == []


def test_delete_discards_the_image_of_the_removed_obstacle(clock):
    a = make_obstacle("A", image_uri="/images/a.jpg")
    images = FakeImageProvider()
    registry = ObstacleRegistry(
        MemoryObstacleStore([a]), FakeLocationProvider(), images, clock=clock
    )
    registry.load()

    registry.delete("A")

    assert images.discarded == ["/images/a.jpg"]


def test_delete_unknown_id_is_a_noop(registry, store):
    created = registry.create("Kept", "still here")
    writes = store.writes
    store.fail_writes = True

    assert registry.delete("missing") is None
    assert registry.list() == (created,)
    assert store.writes == writes


def test_delete_persist_failure_keeps_obstacle(registry, store, images):
    created = registry.create("Kept", "still here", ImageSource.LIBRARY)
    store.fail_writes = True

    with pytest.raises(ObstaclePersistError):
        registry.delete(created.id)

    assert registry.list() == (created,)
    assert store.saved == [created]
    assert images.discarded == []


def test_load_replaces_in_memory_collection(registry, store):
    registry.create("Old", "replaced")
    store.saved = [make_obstacle("X"), make_obstacle("Y")]

    loaded = registry.load()

    assert [o.id for o in loaded] == ["X", "Y"]
    assert [o.id for o in registry.list()] == ["X", "Y"]


def test_load_with_nothing_stored_is_empty(registry):
    assert registry.load() == []
    assert registry.list() == ()


def test_load_failure_leaves_collection_empty(registry, store):
    registry.create("Visible", "before reload")
    store.fail_reads = True

    with pytest.raises(ObstacleLoadError):
        registry.load()

    assert registry.list() == ()


def test_list_snapshot_is_not_affected_by_later_mutations(registry):
    registry.create("First", "one")
    snapshot = registry.list()
    registry.create("Second", "two")

    assert len(snapshot) == 1
    assert len(registry.list()) == 2


def test_concurrent_creates_keep_every_obstacle(registry, store):
    threads = [
        threading.Thread(target=registry.create, args=(f"T{i}", "parallel"))
        for i in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    obstacles = registry.list()
    assert len(obstacles) == 8
    assert len({o.id for o in obstacles}) == 8
    assert store.saved == list(obstacles)


def test_undecodable_store_file_empties_collection_on_load(tmp_path, location, images, clock):
    store = KeyValueObstacleStore(JsonFileKeyValueStore(str(tmp_path)))
    registry = ObstacleRegistry(store, location, images, clock=clock)
    registry.create("Pole", "Cable")
    registry.load()
    (tmp_path / "obstacles.json").write_bytes(b'[{"id": "\xff"}]')

    with pytest.raises(ObstacleLoadError):
        registry.load()

    assert registry.list() == ()

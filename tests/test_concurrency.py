"""
Readers racing a writer.

Readers never take the write lock; every answer they get must come from one
consistent published state.
"""

from __future__ import annotations

import threading

from metatypes.registry import MetaDataRegistry, TypeId


def test_readers_see_consistent_states_while_writer_registers(registry: MetaDataRegistry) -> None:
    registry.register_type("object.base", lambda d: d.accepts_children("field"))
    registry.register_type("field.base")
    stop = threading.Event()
    errors: list[BaseException] = []

    def writer() -> None:
        try:
            for i in range(200):
                registry.register_type(f"field.f{i}", lambda d: d.inherits_from("field.base"))
                registry.register_type(f"view.v{i}")
        finally:
            stop.set()

    def reader() -> None:
        try:
            while not stop.is_set():
                snapshot = registry.snapshot()
                for definition in snapshot.types.values():
                    # Every published field subtype is already resolved against field.base
                    if definition.type_id.type == "field" and definition.type_id.subtype != "base":
                        assert definition.ancestors == (TypeId("field", "base"),)
                assert registry.accepts_child("object.base", "field.base", "x")
                assert not registry.accepts_child("object.base", "view.base", "x")
        except BaseException as e:  # noqa: BLE001 - surfaced via the errors list
            errors.append(e)

    threads = [threading.Thread(target=reader) for _ in range(4)]
    threads.append(threading.Thread(target=writer))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(registry) == 402
    assert len(registry.flattener.valid_child_types("object.base")) == 201


def test_extension_during_reads_is_atomic(registry: MetaDataRegistry) -> None:
    registry.register_type("object.base", lambda d: d.accepts_children("field"))
    registry.register_type("field.base")
    registry.register_type("view.base")
    seen: list[tuple[bool, bool]] = []
    start = threading.Barrier(2)

    def reader() -> None:
        start.wait()
        for _ in range(500):
            table = registry.flattener.table()
            seen.append(
                (
                    table.generation == registry.generation or table.generation < registry.generation,
                    registry.accepts_child("object.base", "field.base", "x"),
                )
            )

    thread = threading.Thread(target=reader)
    thread.start()
    start.wait()
    registry.find_type("object.base").accepts_children("view").commit()
    thread.join()

    assert all(ok and field_allowed for ok, field_allowed in seen)
    assert registry.accepts_child("object.base", "view.base", "x")

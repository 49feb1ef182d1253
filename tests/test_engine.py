import threading
import zipfile
from dataclasses import dataclass

import pytest

from zipindex.errors import StatusTransitionError, StoreError
from zipindex.ingest import IngestionEngine, LifecycleTracker, WalkLimits
from zipindex.models import ProjectStatus
from zipindex.storage import IndexStoreSQLite

from tests.archives import bump_extract_version, corrupt, make_zip


def entries_of(store, project):
    return store.list_all_by_project(project.id)


def by_path(store, project):
    return {e.path: e for e in entries_of(store, project)}


def test_flat_archive_one_record_per_entry(engine, store, project):
    data = make_zip([("a.txt", "A"), ("b.json", "{}"), ("c.bin", b"\x00\x01")])

    result = engine.ingest(project.id, data)

    records = entries_of(store, project)
    assert [r.path for r in records] == ["a.txt", "b.json", "c.bin"]
    assert all(r.parent_directory is None for r in records)
    assert all(r.path == r.name for r in records)
    assert result.status == ProjectStatus.COMPLETED
    assert store.get_project(project.id).status == ProjectStatus.COMPLETED


def test_parent_directory_without_directory_entries(engine, store, project):
    engine.ingest(project.id, make_zip([("a/b/c.txt", "deep")]))

    records = entries_of(store, project)
    assert len(records) == 1
    assert records[0].path == "a/b/c.txt"
    assert records[0].name == "c.txt"
    assert records[0].parent_directory == "a/b"
    assert store.find_by_project_and_path(project.id, "a/b") is None


def test_explicit_directory_entries_are_recorded(engine, store, project):
    engine.ingest(project.id, make_zip([("a/", None), ("a/b/", None), ("a/b/x.txt", "x")]))

    records = by_path(store, project)
    assert set(records) == {"a", "a/b", "a/b/x.txt"}
    assert records["a"].is_directory
    assert records["a"].parent_directory is None
    assert records["a"].extension is None
    assert records["a"].size_bytes is None
    assert records["a/b"].parent_directory == "a"
    assert records["a/b/x.txt"].parent_directory == "a/b"


def test_nested_jar_contents_are_prefixed(engine, store, project):
    jar = make_zip([("inner/", None), ("inner/readme.txt", "hello from the jar")])
    result = engine.ingest(project.id, make_zip([("outer.jar", jar)]))

    records = by_path(store, project)
    assert set(records) == {"outer.jar/inner", "outer.jar/inner/readme.txt"}
    readme = records["outer.jar/inner/readme.txt"]
    assert readme.parent_directory == "outer.jar/inner"
    assert readme.preview == "hello from the jar"
    assert records["outer.jar/inner"].parent_directory == "outer.jar"
    assert result.stats.nested_archives == 1


def test_jar_inside_jar(engine, store, project):
    innermost = make_zip([("c.txt", "C")])
    middle = make_zip([("b.jar", innermost), ("m.properties", "k=v")])
    outer = make_zip([("lib/a.jar", middle), ("top.txt", "T")])

    result = engine.ingest(project.id, outer)

    records = by_path(store, project)
    assert set(records) == {"lib/a.jar/b.jar/c.txt", "lib/a.jar/m.properties", "top.txt"}
    assert records["lib/a.jar/b.jar/c.txt"].parent_directory == "lib/a.jar/b.jar"
    assert records["lib/a.jar/m.properties"].parent_directory == "lib/a.jar"
    assert result.stats.nested_archives == 2


def test_uppercase_jar_suffix_is_expanded(engine, store, project):
    engine.ingest(project.id, make_zip([("LIB.JAR", make_zip([("x.txt", "x")]))]))

    assert [r.path for r in entries_of(store, project)] == ["LIB.JAR/x.txt"]


def test_archive_order_is_preserved(engine, store, project):
    names = ["z.txt", "m/", "m/a.txt", "a.txt", "k.xml"]
    engine.ingest(project.id, make_zip([(n, None if n.endswith("/") else n) for n in names]))

    assert [r.path for r in entries_of(store, project)] == ["z.txt", "m", "m/a.txt", "a.txt", "k.xml"]


def test_previews_only_for_text_like_files(engine, store, project):
    engine.ingest(
        project.id,
        make_zip([("notes.txt", "x" * 2000), ("logo.png", "not really a png"), ("App.class", b"\xca\xfe\xba\xbe")]),
    )

    records = by_path(store, project)
    assert records["notes.txt"].preview == "x" * 500
    assert records["notes.txt"].size_bytes == 2000
    assert records["logo.png"].preview is None
    assert records["App.class"].preview is None


def test_corrupt_entry_does_not_stop_the_walk(engine, store, project):
    data = make_zip(
        [("good1.txt", "first"), ("bad.txt", "hello corrupt world"), ("good2.txt", "second")],
        compression=zipfile.ZIP_STORED,
    )
    data = corrupt(data, b"hello corrupt world", b"HELLO CORRUPT WORLD")

    result = engine.ingest(project.id, data)

    records = by_path(store, project)
    assert set(records) == {"good1.txt", "bad.txt", "good2.txt"}
    assert records["bad.txt"].preview is None
    assert records["good2.txt"].preview == "second"
    assert result.status == ProjectStatus.COMPLETED
    assert store.get_project(project.id).error_count == 1


def test_unopenable_nested_jar_is_skipped(engine, store, project):
    data = make_zip([("broken.jar", b"not a jar at all"), ("after.txt", "still here")])

    result = engine.ingest(project.id, data)

    assert [r.path for r in entries_of(store, project)] == ["after.txt"]
    assert result.status == ProjectStatus.COMPLETED
    assert result.stats.errors == 1


def test_nested_jar_with_unsupported_zip_version_is_skipped(engine, store, project):
    jar = bump_extract_version(make_zip([("Inner.java", "class Inner {}")]))
    data = make_zip([("a.txt", "first"), ("bad.jar", jar), ("z.txt", "last")])

    result = engine.ingest(project.id, data)

    assert [r.path for r in entries_of(store, project)] == ["a.txt", "z.txt"]
    assert result.status == ProjectStatus.COMPLETED
    assert result.stats.errors == 1


def test_nested_jar_with_corrupt_bytes_is_skipped(engine, store, project):
    jar = make_zip([("Hello.java", "class Hello {}")])
    data = make_zip(
        [("a.txt", "first"), ("lib/bad.jar", jar), ("z.txt", "last")],
        compression=zipfile.ZIP_STORED,
    )
    data = corrupt(data, b"Hello.java", b"Jello.java")

    result = engine.ingest(project.id, data)

    assert [r.path for r in entries_of(store, project)] == ["a.txt", "z.txt"]
    assert result.status == ProjectStatus.COMPLETED
    assert result.stats.nested_archives == 0
    assert store.get_project(project.id).error_count == 1


def test_non_zip_archive_fails_with_no_rows(engine, store, project):
    result = engine.ingest(project.id, b"plain text, definitely not a zip")

    assert result.status == ProjectStatus.FAILED
    assert store.get_project(project.id).status == ProjectStatus.FAILED
    assert store.count_by_project(project.id) == 0


def test_missing_archive_file_fails(engine, store, project, tmp_path):
    result = engine.ingest(project.id, tmp_path / "gone.zip")

    assert result.status == ProjectStatus.FAILED
    assert store.count_by_project(project.id) == 0


class FlakyStore(IndexStoreSQLite):
    """Store that refuses to write particular paths."""

    def __init__(self, path, refuse):
        super().__init__(path)
        self.refuse = set(refuse)

    def insert(self, entry):
        if entry.path in self.refuse:
            raise StoreError(f"connection lost while writing {entry.path}")
        return super().insert(entry)


def test_store_failures_are_isolated_per_entry(tmp_path, tracker, project):
    store = FlakyStore(tracker.store.path, refuse={"b.txt", "d"})
    engine = IngestionEngine(store, tracker, WalkLimits())

    result = engine.ingest(project.id, make_zip([("a.txt", "a"), ("b.txt", "b"), ("d/", None), ("c.txt", "c")]))

    assert [r.path for r in store.list_all_by_project(project.id)] == ["a.txt", "c.txt"]
    assert result.status == ProjectStatus.COMPLETED
    assert result.stats.errors == 2
    assert store.get_project(project.id).error_count == 2


class ErrorCountLostStore(IndexStoreSQLite):
    """Store whose error-count update always fails."""

    def set_error_count(self, project_id, error_count):
        raise StoreError("database is locked")


def test_failed_error_count_update_still_finishes_the_project(tmp_path, project):
    store = ErrorCountLostStore(tmp_path / "index.db")
    engine = IngestionEngine(store, LifecycleTracker(store), WalkLimits())

    result = engine.ingest(project.id, make_zip([("a.txt", "a")]))

    assert result.status == ProjectStatus.COMPLETED
    assert store.get_project(project.id).status == ProjectStatus.COMPLETED
    assert store.count_by_project(project.id) == 1


def test_depth_limit_stops_only_the_nested_expansion(store, tracker, project):
    deep = make_zip([("deep.txt", "deep")])
    shallow = make_zip([("deeper.jar", deep), ("shallow.txt", "shallow")])
    engine = IngestionEngine(store, tracker, WalkLimits(max_depth=1))

    result = engine.ingest(project.id, make_zip([("a.jar", shallow), ("top.txt", "top")]))

    assert set(by_path(store, project)) == {"a.jar/shallow.txt", "top.txt"}
    assert result.status == ProjectStatus.COMPLETED
    assert result.stats.errors == 1


def test_zero_depth_disables_nested_expansion(store, tracker, project):
    engine = IngestionEngine(store, tracker, WalkLimits(max_depth=0))

    engine.ingest(project.id, make_zip([("a.jar", make_zip([("x.txt", "x")])), ("b.txt", "b")]))

    assert [r.path for r in entries_of(store, project)] == ["b.txt"]


def test_byte_budget_limits_nested_expansion(store, tracker, project):
    small = make_zip([("s.txt", "s")])
    large = make_zip([("l.txt", "l" * 10_000)], compression=zipfile.ZIP_STORED)
    engine = IngestionEngine(store, tracker, WalkLimits(max_nested_bytes=len(small) + 100))

    result = engine.ingest(project.id, make_zip([("small.jar", small), ("large.jar", large)]))

    assert [r.path for r in entries_of(store, project)] == ["small.jar/s.txt"]
    assert result.stats.nested_archives == 1
    assert result.stats.errors == 1


def test_duplicate_paths_are_kept(engine, store, project):
    engine.ingest(project.id, make_zip([("dup.txt", "one"), ("dup.txt", "two")]))

    assert [r.preview for r in entries_of(store, project)] == ["one", "two"]


def test_cancelled_walk_marks_project_failed(engine, store, project):
    cancel = threading.Event()
    cancel.set()

    result = engine.ingest(project.id, make_zip([("a.txt", "a")]), cancel_event=cancel)

    assert result.status == ProjectStatus.FAILED
    assert store.count_by_project(project.id) == 0


def test_on_entry_sees_every_written_entry(engine, project):
    seen = []
    engine.ingest(project.id, make_zip([("d/", None), ("d/f.txt", "f")]), on_entry=seen.append)

    assert [e.path for e in seen] == ["d", "d/f.txt"]
    assert all(e.id is not None for e in seen)


def test_finished_project_cannot_be_ingested_again(engine, project):
    engine.ingest(project.id, make_zip([("a.txt", "a")]))

    with pytest.raises(StatusTransitionError):
        engine.ingest(project.id, make_zip([("a.txt", "a")]))


@dataclass
class FakeEntry:
    name: str
    content: bytes = b""

    @property
    def is_dir(self):
        return self.name.endswith("/")

    @property
    def size(self):
        return len(self.content)

    def read_bytes(self):
        return self.content

    def read_head(self, n):
        return self.content[:n]


def test_walk_accepts_any_entry_source(engine, store, project):
    stats = engine.walk(
        project.id,
        [FakeEntry("src/"), FakeEntry("src/Main.java", b"class Main {}")],
        base_path="upload.jar",
    )

    records = by_path(store, project)
    assert records["upload.jar/src"].parent_directory == "upload.jar"
    assert records["upload.jar/src/Main.java"].preview == "class Main {}"
    assert stats.directories == 1
    assert stats.files == 1
    assert stats.previews == 1

import pytest

from zipindex.errors import StoreError
from zipindex.models import NewEntry, ProjectStatus


def add(store, project, path, is_directory=False, parent=None):
    name = path.rsplit("/", 1)[-1]
    return store.insert(
        NewEntry(
            project_id=project.id,
            path=path,
            name=name,
            is_directory=is_directory,
            parent_directory=parent,
            extension=None if is_directory else ".txt",
            size_bytes=None if is_directory else 1,
        )
    )


def test_new_project_starts_uploaded(store, project):
    assert project.status == ProjectStatus.UPLOADED
    assert project.error_count == 0
    assert store.get_project(project.id) == project


def test_insert_returns_stored_entry(store, project):
    stored = add(store, project, "a/b.txt", parent="a")

    assert stored.id > 0
    assert stored.project_id == project.id
    assert stored.parent_directory == "a"
    assert stored.extension == ".txt"


def test_listing_puts_directories_first_then_names(store, project):
    add(store, project, "b.txt")
    add(store, project, "z", is_directory=True)
    add(store, project, "a.txt")
    add(store, project, "c", is_directory=True)

    names = [e.name for e in store.list_by_project(project.id, limit=10)]
    assert names == ["c", "z", "a.txt", "b.txt"]


def test_listing_by_parent_scopes_to_one_level(store, project):
    add(store, project, "src", is_directory=True)
    add(store, project, "src/main.txt", parent="src")
    add(store, project, "src/util", is_directory=True, parent="src")
    add(store, project, "src/util/io.txt", parent="src/util")
    add(store, project, "readme.txt")

    in_src = store.list_by_project_and_parent(project.id, "src", limit=10)
    top = store.list_by_project_and_parent(project.id, None, limit=10)

    assert [e.path for e in in_src] == ["src/util", "src/main.txt"]
    assert [e.path for e in top] == ["src", "readme.txt"]
    assert store.count_by_project_and_parent(project.id, "src") == 2
    assert store.list_directories(project.id) == ["src", "src/util"]


def test_limit_and_offset(store, project):
    for i in range(25):
        add(store, project, f"f{i:02d}.txt")

    assert store.count_by_project(project.id) == 25
    assert len(store.list_by_project(project.id, limit=10, offset=20)) == 5


def test_find_by_path(store, project):
    add(store, project, "a/b.txt", parent="a")

    assert store.find_by_project_and_path(project.id, "a/b.txt").name == "b.txt"
    assert store.find_by_project_and_path(project.id, "a/c.txt") is None


def test_projects_do_not_share_entries(store, project):
    other = store.create_project(
        user_id=2, name="other", original_filename="o.zip", archive_path="o.zip", archive_size=1
    )
    add(store, project, "mine.txt")
    add(store, other, "theirs.txt")

    assert [e.path for e in store.list_by_project(project.id, limit=10)] == ["mine.txt"]
    assert store.find_by_project_and_path(other.id, "mine.txt") is None


def test_delete_all_by_project(store, project):
    add(store, project, "a.txt")
    add(store, project, "b.txt")

    assert store.delete_all_by_project(project.id) == 2
    assert store.count_by_project(project.id) == 0


def test_entries_require_an_existing_project(store):
    with pytest.raises(StoreError):
        store.insert(NewEntry(project_id=999, path="x", name="x", is_directory=False))


def test_deleting_project_cascades(store, project):
    add(store, project, "a.txt")

    assert store.delete_project(project.id)
    assert store.get_project(project.id) is None
    assert store.count_by_project(project.id) == 0


def test_list_projects_per_user(store, project):
    store.create_project(
        user_id=2, name="other", original_filename="o.zip", archive_path="o.zip", archive_size=1
    )

    assert [p.name for p in store.list_projects(1, limit=10)] == ["demo"]
    assert store.count_projects() == 2
    assert store.count_projects(2) == 1

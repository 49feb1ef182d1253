import pytest

from zipindex.cli import main

from tests.archives import make_zip


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    archive = tmp_path / "app.zip"
    archive.write_bytes(
        make_zip(
            [
                ("conf/", None),
                ("conf/app.properties", "name=demo\n"),
                ("lib/util.jar", make_zip([("util/Strings.java", "class Strings {}")])),
            ]
        )
    )
    return tmp_path, str(tmp_path / "index.db"), str(archive)


def test_ingest_then_browse(workspace, capsys):
    _, db, archive = workspace

    main(["--db", db, "ingest", archive, "--name", "demo"])
    main(["--db", db, "ls", "1", "--directory", "/"])
    top = capsys.readouterr().out

    main(["--db", db, "ls", "1", "--directory", "lib/util.jar/util"])
    nested = capsys.readouterr().out

    main(["--db", db, "read", "1", "conf/app.properties"])
    preview = capsys.readouterr().out

    assert "conf/" in top and "[dir]" in top
    assert "lib/util.jar/util/Strings.java" in nested
    assert "name=demo" in preview


def test_info_and_projects(workspace, capsys):
    _, db, archive = workspace
    main(["--db", db, "ingest", archive, "--name", "demo", "--description", "sample"])
    capsys.readouterr()

    main(["--db", db, "info", "1"])
    info = capsys.readouterr().out
    main(["--db", db, "projects"])
    listing = capsys.readouterr().out

    assert "Project #1: demo" in info
    assert "Status: completed" in info
    assert "Entries: 3" in info
    assert "demo" in listing and "completed" in listing


def test_delete_then_lookup_fails(workspace):
    _, db, archive = workspace
    main(["--db", db, "ingest", archive])
    main(["--db", db, "delete", "1"])

    with pytest.raises(SystemExit) as excinfo:
        main(["--db", db, "ls", "1"])
    assert excinfo.value.code == 1


def test_missing_archive_exits_with_error(workspace):
    _, db, _ = workspace

    with pytest.raises(SystemExit) as excinfo:
        main(["--db", db, "ingest", "does-not-exist.zip"])
    assert excinfo.value.code == 1

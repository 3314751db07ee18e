"""
Tests for the flat-file to MongoDB migration tool.

The import logic is exercised against a `JsonFileStore` target, which follows
the same uniqueness rules as the MongoDB store.
"""
import json

import pytest

from wrytix.cli import migrate_cli
from wrytix.cli.migrate_cli import build_parser, migrate, prepare
from wrytix.database.json_store import JsonFileStore
from wrytix.database.store import COMMENTS, PENDING_USERS, POSTS, USERS


def write(path, name, data):
    (path / name).write_text(json.dumps(data), encoding="utf-8")


def test_prepare_dedupes_on_natural_key():
    users = [{"id": 1, "username": "ann"}, {"id": 2, "username": "ann"}, {"id": 3, "username": "bob", "_id": "x"}]

    prepared = prepare(USERS, users)

    assert prepared == [{"id": "1", "username": "ann"}, {"id": "3", "username": "bob"}]


def test_prepare_assigns_post_ids():
    prepared = prepare(POSTS, [{"slug": "a"}, {"slug": "b", "id": 7}, {"slug": "a"}])

    assert len(prepared) == 2
    assert prepared[0]["id"]
    assert prepared[1]["id"] == "7"


def test_prepare_converts_legacy_comment_map():
    prepared = prepare(COMMENTS, {"hello": [{"username": "ann", "comment": "hi"}]})

    assert prepared == [{"slug": "hello", "comments": [{"username": "ann", "comment": "hi"}]}]


def test_prepare_rejects_non_array():
    with pytest.raises(ValueError):
        prepare(POSTS, {"slug": "a"})


@pytest.mark.asyncio
async def test_migrate_inserts_and_skips_existing(tmp_path):
    source = tmp_path / "source"
    source.mkdir()
    write(source, "users.json", [{"id": "u1", "username": "ann"}, {"id": "u2", "username": "bob"}])
    write(source, "pendingUsers.json", [{"id": "p1", "username": "cy"}, {"id": "p2", "username": "cy"}])
    write(source, "logs.json", [])
    target = JsonFileStore(str(tmp_path / "target"))
    await target.insert_one(USERS, {"id": "u1", "username": "ann"})

    report = await migrate(source, target)

    assert report[USERS] == {"found": 2, "prepared": 2, "inserted": 1, "skipped": 1}
    assert report[PENDING_USERS] == {"found": 2, "prepared": 1, "inserted": 1, "skipped": 0}
    assert "logs" not in report
    assert await target.count(USERS) == 2
    assert await target.count(PENDING_USERS) == 1


@pytest.mark.asyncio
async def test_dry_run_writes_nothing(tmp_path):
    write(tmp_path, "posts.json", [{"slug": "a"}, {"slug": "a"}])

    report = await migrate(tmp_path, None, collections=[POSTS], dry_run=True)

    assert report == {POSTS: {"found": 2, "prepared": 1, "inserted": 0, "skipped": 0}}


def test_parser_options():
    args = build_parser().parse_args(["--data-dir", "/data", "--collections", "users", "posts", "--dry-run"])

    assert args.data_dir == "/data"
    assert args.collections == ["users", "posts"]
    assert args.dry_run is True
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--collections", "sessions"])


def test_main_dry_run_prints_report(tmp_path, capsys):
    write(tmp_path, "users.json", [{"id": "u1", "username": "ann"}])

    migrate_cli.main(["--data-dir", str(tmp_path), "--dry-run"])

    assert json.loads(capsys.readouterr().out) == {USERS: {"found": 1, "prepared": 1, "inserted": 0, "skipped": 0}}


def test_main_rejects_missing_directory(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        migrate_cli.main(["--data-dir", str(tmp_path / "nope"), "--dry-run"])

    assert excinfo.value.code == 1

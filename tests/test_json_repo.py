import json

import pytest

from invoicer.storage.json_repo import InMemoryListRepository, JsonListRepository


def _backups(tmp_path):
    return sorted(tmp_path.glob("history.*.bak.json"))


def test_missing_file_reads_empty(tmp_path):
    repo = JsonListRepository(tmp_path / "history.json")
    assert repo.list_all() == []
    assert not (tmp_path / "history.json").exists()


def test_replace_all_keeps_order(tmp_path):
    repo = JsonListRepository(tmp_path / "history.json")
    repo.replace_all([{"number": "INV-0002"}, {"number": "INV-0001"}])
    assert [r["number"] for r in repo.list_all()] == ["INV-0002", "INV-0001"]
    assert json.loads((tmp_path / "history.json").read_text(encoding="utf-8"))[0]["number"] == "INV-0002"


def test_unchanged_rewrite_makes_no_backup(tmp_path):
    repo = JsonListRepository(tmp_path / "history.json")
    repo.replace_all([{"number": "INV-0001"}])
    assert _backups(tmp_path) == []
    repo.replace_all([{"number": "INV-0001"}])
    assert _backups(tmp_path) == []

    repo.replace_all([{"number": "INV-0002"}, {"number": "INV-0001"}])
    backups = _backups(tmp_path)
    assert len(backups) == 1
    assert json.loads(backups[0].read_text(encoding="utf-8")) == [{"number": "INV-0001"}]


def test_only_newest_backups_are_kept(tmp_path):
    repo = JsonListRepository(tmp_path / "history.json", keep_backups=2)
    for n in range(6):
        repo.replace_all([{"number": f"INV-{n:04d}"}])
    backups = _backups(tmp_path)
    assert len(backups) == 2
    assert json.loads(backups[-1].read_text(encoding="utf-8")) == [{"number": "INV-0004"}]


def test_backups_can_be_disabled(tmp_path):
    repo = JsonListRepository(tmp_path / "history.json", keep_backups=0)
    repo.replace_all([{"number": "INV-0001"}])
    repo.replace_all([{"number": "INV-0002"}])
    assert _backups(tmp_path) == []


def test_replace_at(tmp_path):
    repo = JsonListRepository(tmp_path / "history.json")
    repo.replace_all([{"number": "INV-0002"}, {"number": "INV-0001"}])
    repo.replace_at(1, {"number": "INV-0001", "client": "Acme"})
    assert repo.list_all()[1] == {"number": "INV-0001", "client": "Acme"}
    with pytest.raises(IndexError):
        repo.replace_at(5, {})


def test_in_memory_returns_copies():
    repo = InMemoryListRepository([{"number": "INV-0001"}])
    rows = repo.list_all()
    rows[0]["number"] = "changed"
    assert repo.list_all() == [{"number": "INV-0001"}]

import shutil
from datetime import date

import pytest

from app.core.errors import StorageError, ValidationError
from app.services.shard_store import JsonlShardStore, ShardKey, ShardNotFound, check_tenant_id


class TestShardKey:
    def test_name_is_tenant_and_iso_date(self):
        assert ShardKey("acme", date(2026, 3, 1)).name == "acme_2026-03-01.jsonl"

    def test_parse_round_trips_tenant_with_underscores(self):
        key = ShardKey.parse("acme_corp_2026-03-01.jsonl")
        assert key == ShardKey("acme_corp", date(2026, 3, 1))

    @pytest.mark.parametrize(
        "name",
        [
            "acme_2026-13-40.jsonl",  # impossible date
            "acme.jsonl",
            "acme_2026-03-01.json",
            "_2026-03-01.jsonl",
            "notes.txt",
        ],
    )
    def test_parse_rejects_names_without_a_valid_day(self, name):
        assert ShardKey.parse(name) is None


class TestTenantIdCheck:
    @pytest.mark.parametrize("tenant_id", ["../etc", "a/b", "a\\b", "..", "."])
    def test_path_like_ids_are_rejected(self, tenant_id):
        with pytest.raises(ValidationError):
            check_tenant_id(tenant_id)

    def test_plain_ids_pass(self):
        check_tenant_id("tenant-1f2e")


class TestJsonlShardStore:
    def test_append_creates_directory_and_shard(self, tmp_path):
        root = tmp_path / "fresh" / "analytics"
        store = JsonlShardStore(root)
        store.append(ShardKey("acme", date(2026, 3, 1)), '{"a":1}\n')

        assert (root / "acme_2026-03-01.jsonl").read_text() == '{"a":1}\n'

    def test_append_recreates_a_removed_directory(self, store, shard_dir):
        store.append(ShardKey("acme", date(2026, 3, 1)), '{"n":1}\n')
        shutil.rmtree(shard_dir)
        store.append(ShardKey("acme", date(2026, 3, 1)), '{"n":2}\n')

        assert store.read_shard("acme_2026-03-01.jsonl") == [b'{"n":2}']

    def test_appends_accumulate_in_order(self, store):
        key = ShardKey("acme", date(2026, 3, 1))
        store.append(key, '{"n":1}\n')
        store.append(key, '{"n":2}\n')

        assert store.read_shard(key.name) == [b'{"n":1}', b'{"n":2}']

    def test_multi_line_record_is_refused(self, store, shard_dir):
        with pytest.raises(ValidationError):
            store.append(ShardKey("acme", date(2026, 3, 1)), '{"a":1}\n{"b":2}\n')
        assert not (shard_dir / "acme_2026-03-01.jsonl").exists()

    def test_unwritable_root_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "analytics"
        blocker.write_text("not a directory")
        store = JsonlShardStore(blocker)

        with pytest.raises(StorageError):
            store.append(ShardKey("acme", date(2026, 3, 1)), "{}\n")

    def test_read_missing_shard(self, store):
        with pytest.raises(ShardNotFound):
            store.read_shard("acme_2026-03-01.jsonl")

    def test_read_skips_blank_lines(self, store, shard_dir):
        shard_dir.mkdir()
        (shard_dir / "acme_2026-03-01.jsonl").write_bytes(b'{"n":1}\n\n  \n{"n":2}')
        assert store.read_shard("acme_2026-03-01.jsonl") == [b'{"n":1}', b'{"n":2}']

    def test_delete(self, store, shard_dir):
        key = ShardKey("acme", date(2026, 3, 1))
        store.append(key, "{}\n")
        store.delete_shard(key.name)

        assert not (shard_dir / key.name).exists()
        with pytest.raises(ShardNotFound):
            store.delete_shard(key.name)

    def test_list_only_jsonl_files(self, store, shard_dir):
        shard_dir.mkdir()
        (shard_dir / "b_2026-03-02.jsonl").write_text("{}\n{}\n")
        (shard_dir / "a_2026-03-01.jsonl").write_text("{}\n")
        (shard_dir / "README.txt").write_text("hi")
        (shard_dir / "nested.jsonl").mkdir()

        shards = store.list_shards()
        assert [s.name for s in shards] == ["a_2026-03-01.jsonl", "b_2026-03-02.jsonl"]
        assert shards[1].size == 6
        assert shards[0].last_modified.tzinfo is not None

    def test_list_without_root_is_empty(self, tmp_path):
        assert JsonlShardStore(tmp_path / "missing").list_shards() == []

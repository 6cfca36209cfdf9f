"""Tests for multitool.vault.store: sandboxed file operations."""

import pytest

from multitool.core.errors import AccessDenied, NotAFile, NotFound, ServiceNotConfigured
from multitool.vault.cache import ViewCache, read_uri
from multitool.vault.store import VaultStore


@pytest.fixture
def vault(tmp_path):
    root = tmp_path / "vault"
    (root / "notes").mkdir(parents=True)
    (root / "notes" / "b.md").write_text("# B\nbody", encoding="utf-8")
    (root / "a.txt").write_text("alpha", encoding="utf-8")
    return VaultStore(root, cache=ViewCache(8))


class TestList:
    def test_lists_children_sorted_by_name(self, vault):
        listing = vault.list("")
        assert [e.name for e in listing.files] == ["a.txt", "notes"]
        directory = listing.files[1]
        assert directory.is_directory is True
        assert directory.size == 0
        assert directory.path == "notes"
        assert listing.current_path == ""

    def test_lists_subdirectory(self, vault):
        listing = vault.list("/notes/")
        assert listing.current_path == "notes"
        assert [e.path for e in listing.files] == ["notes/b.md"]
        assert listing.files[0].size == len("# B\nbody")
        assert listing.files[0].modified.endswith("Z")

    def test_missing_directory(self, vault):
        with pytest.raises(NotFound, match="Directory not found"):
            vault.list("nope")

    def test_file_is_not_a_directory(self, vault):
        with pytest.raises(NotFound):
            vault.list("a.txt")

    def test_outside_root(self, vault):
        with pytest.raises(AccessDenied):
            vault.list("..")

    def test_serialises_with_camel_case_aliases(self, vault):
        payload = vault.list("").model_dump(by_alias=True)
        assert "currentPath" in payload
        assert "isDirectory" in payload["files"][0]


class TestRead:
    def test_reads_content_and_info(self, vault):
        result = vault.read("notes/b.md")
        assert result.content == "# B\nbody"
        assert result.file_info.name == "b.md"
        assert result.file_info.path == "notes/b.md"

    def test_missing_file(self, vault):
        with pytest.raises(NotFound, match="File not found: missing.md"):
            vault.read("missing.md")

    def test_directory_is_not_a_file(self, vault):
        with pytest.raises(NotAFile, match="Directory cannot be read as a file"):
            vault.read("notes")

    def test_traversal(self, vault):
        with pytest.raises(AccessDenied):
            vault.read("../secret.md")


class TestCreateAndUpdate:
    def test_create_then_read_round_trip(self, vault):
        result = vault.create("new/deep/c.md", "hello")
        assert result.created is True
        assert result.path == "new/deep/c.md"
        assert result.entry.size == 5
        assert vault.read("new/deep/c.md").content == "hello"

    def test_create_existing_without_overwrite_is_untouched(self, vault):
        result = vault.create("a.txt", "changed")
        assert result.created is False
        assert result.entry is None
        assert vault.read("a.txt").content == "alpha"

    def test_create_with_overwrite(self, vault):
        result = vault.create("a.txt", "changed", overwrite=True)
        assert result.created is True
        assert vault.read("a.txt").content == "changed"

    @pytest.mark.parametrize("target", ["", "/", "notes"])
    def test_create_on_directory_path(self, vault, target):
        with pytest.raises(NotAFile):
            vault.create(target, "x")

    def test_create_outside_root_writes_nothing(self, vault, tmp_path):
        with pytest.raises(AccessDenied):
            vault.create("../escape.md", "x")
        assert not (tmp_path / "escape.md").exists()

    def test_update_replace(self, vault):
        entry = vault.update("a.txt", "beta")
        assert entry.size == 4
        assert vault.read("a.txt").content == "beta"

    def test_update_append_joins_with_newline(self, vault):
        vault.update("a.txt", "beta", append=True)
        assert vault.read("a.txt").content == "alpha\nbeta"

    def test_update_missing_file(self, vault):
        with pytest.raises(NotFound):
            vault.update("missing.md", "x")

    def test_update_directory(self, vault):
        with pytest.raises(NotFound):
            vault.update("notes", "x")

    def test_writes_invalidate_cache(self, vault):
        vault.cache.put(read_uri("notes/b.md"), "stale")
        vault.update("notes/b.md", "fresh")
        assert read_uri("notes/b.md") not in vault.cache

        vault.cache.put(read_uri("a.txt"), "stale")
        vault.create("a.txt", "x", overwrite=True)
        assert read_uri("a.txt") not in vault.cache

    @pytest.mark.parametrize("alias", ["a.txt", "/a.txt", "./a.txt", "notes/../a.txt"])
    def test_cache_key_is_canonical(self, vault, alias):
        assert vault.cache_key(alias) == read_uri("a.txt")

    def test_write_through_alias_invalidates_canonical_entry(self, vault):
        vault.cache.put(vault.cache_key("a.txt"), "stale")
        vault.update("notes/../a.txt", "fresh")
        assert read_uri("a.txt") not in vault.cache

        vault.cache.put(vault.cache_key("notes/b.md"), "stale")
        vault.create("./notes/b.md", "new", overwrite=True)
        assert read_uri("notes/b.md") not in vault.cache


def test_unconfigured_store_raises():
    store = VaultStore(None)
    assert store.configured is False
    with pytest.raises(ServiceNotConfigured, match="OBSIDIAN_VAULT_PATH"):
        store.list("")

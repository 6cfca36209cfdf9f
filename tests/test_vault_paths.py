"""Tests for vault path sandboxing."""

import os

import pytest

from multitool.core.errors import AccessDenied
from multitool.vault.paths import normalize_relative_path, relative_to_root, resolve_vault_path


@pytest.mark.parametrize(
    "raw,expected",
    [("", ""), ("/", ""), ("notes/", "notes"), ("/notes/a.md", "notes/a.md"), ("a.md", "a.md")],
)
def test_normalize_relative_path(raw, expected):
    assert normalize_relative_path(raw) == expected


def test_root_and_children_resolve_inside(tmp_path):
    root = tmp_path.resolve()
    assert resolve_vault_path(tmp_path, "") == root
    assert resolve_vault_path(tmp_path, "/") == root
    assert resolve_vault_path(tmp_path, "notes/a.md") == root / "notes" / "a.md"


def test_dotdot_inside_root_is_allowed(tmp_path):
    assert resolve_vault_path(tmp_path, "notes/../a.md") == tmp_path.resolve() / "a.md"


@pytest.mark.parametrize("candidate", ["..", "../outside.md", "notes/../../x", "a/b/../../../etc/passwd"])
def test_traversal_is_rejected(tmp_path, candidate):
    vault = tmp_path / "vault"
    vault.mkdir()
    with pytest.raises(AccessDenied) as excinfo:
        resolve_vault_path(vault, candidate)
    assert str(excinfo.value) == "Access denied: path outside of allowed directory"
    assert str(vault) not in str(excinfo.value)


def test_sibling_with_shared_prefix_is_rejected(tmp_path):
    vault = tmp_path / "vault"
    vault.mkdir()
    (tmp_path / "vault-evil").mkdir()
    with pytest.raises(AccessDenied):
        resolve_vault_path(vault, "../vault-evil/secret.md")


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_symlink_escape_is_rejected(tmp_path):
    vault = tmp_path / "vault"
    vault.mkdir()
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.md").write_text("secret", encoding="utf-8")
    try:
        (vault / "link").symlink_to(outside, target_is_directory=True)
    except OSError:
        pytest.skip("cannot create symlinks here")

    with pytest.raises(AccessDenied) as excinfo:
        resolve_vault_path(vault, "link/secret.md")
    assert excinfo.value.resolved == (outside / "secret.md").resolve()


def test_absolute_looking_path_stays_in_root(tmp_path):
    assert resolve_vault_path(tmp_path, "/etc/passwd") == tmp_path.resolve() / "etc" / "passwd"


def test_relative_to_root(tmp_path):
    assert relative_to_root(tmp_path, tmp_path.resolve()) == ""
    assert relative_to_root(tmp_path, tmp_path.resolve() / "a" / "b.md") == "a/b.md"

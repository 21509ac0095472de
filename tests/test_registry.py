from __future__ import annotations

from pathlib import Path

import pytest

from nvpatch.errors import RegistryAccessError
from nvpatch.formats import LUA_MODULES_LISTING, VIM_PLUGINS_LISTING
from nvpatch.registry import (
    classify_url,
    load_registry,
    parse_listing,
    read_plugins,
)

VIM_LISTING = """\
{ lib, buildVimPlugin, buildNeovimPlugin, fetchFromGitHub, fetchgit }:

final: prev:
{
  lazy-nvim = buildVimPlugin {
    pname = "lazy.nvim";
    version = "2024-05-01";
    src = fetchFromGitHub {
      owner = "folke";
      repo = "lazy.nvim";
      rev = "0123456789abcdef";
      sha256 = "0000000000000000000000000000000000000000000000000000";
    };
    meta.homepage = "https://github.com/folke/lazy.nvim/";
  };

  lsp_lines-nvim = buildVimPlugin {
    pname = "lsp_lines.nvim";
    version = "2024-03-01";
    src = fetchgit {
      url = "https://git.sr.ht/~whynothugo/lsp_lines.nvim";
      rev = "abcdef";
      sha256 = "1111111111111111111111111111111111111111111111111111";
    };
    meta.homepage = "https://git.sr.ht/~whynothugo/lsp_lines.nvim/";
  };

  local-only = buildVimPlugin {
    pname = "local-only";
    version = "1.0";
    src = ./local-only;
  };
}
"""

LUA_LISTING = """\
{ self, stdenv, lib, fetchurl, fetchgit, callPackage, ... } @ args:
final: prev:
{
busted = callPackage({ buildLuarocksPackage, fetchFromGitHub, fetchurl, lua }:
buildLuarocksPackage {
  pname = "busted";
  version = "2.2.0-1";
  knownRockspec = (fetchurl {
    url    = "mirror://luarocks/busted-2.2.0-1.rockspec";
    sha256 = "1";
  }).outPath;
  src = fetchFromGitHub {
    owner = "lunarmodules";
    repo = "busted";
    rev = "v2.2.0";
    hash = "sha256-x";
  };
  meta = {
    homepage = "https://lunarmodules.github.io/busted/";
  };
}) {};

lpeg = callPackage({ buildLuarocksPackage, fetchurl }:
buildLuarocksPackage {
  pname = "lpeg";
  version = "1.1.0-1";
  src = fetchurl {
    url    = "https://www.inf.puc-rio.br/~roberto/lpeg/lpeg-1.1.0.tar.gz";
    sha256 = "2";
  };
  meta = {
    homepage = "https://www.inf.puc-rio.br/~roberto/lpeg.html";
  };
}) {};
}
"""


def _registry(tmp_path: Path) -> Path:
    root = tmp_path / "nixpkgs"
    vim = root / VIM_PLUGINS_LISTING
    lua = root / LUA_MODULES_LISTING
    vim.parent.mkdir(parents=True)
    lua.parent.mkdir(parents=True)
    vim.write_text(VIM_LISTING, encoding="utf-8")
    lua.write_text(LUA_LISTING, encoding="utf-8")
    return root


def test_parse_vim_listing() -> None:
    entries = {e.pname: e for e in parse_listing(VIM_LISTING)}
    assert entries["lazy.nvim"].url == "https://github.com/folke/lazy.nvim"
    assert entries["lazy.nvim"].version == "2024-05-01"
    lsp = entries["lsp_lines.nvim"]
    assert lsp.url == "https://git.sr.ht/~whynothugo/lsp_lines.nvim"
    assert entries["local-only"].url is None


def test_parse_lua_listing_prefers_github_source() -> None:
    entries = {e.pname: e for e in parse_listing(LUA_LISTING)}
    assert entries["busted"].url == "https://github.com/lunarmodules/busted"
    assert entries["busted"].version == "2.2.0-1"
    assert entries["lpeg"].url == "https://www.inf.puc-rio.br/~roberto/lpeg.html"


def test_classify_url() -> None:
    assert classify_url(None) == "unresolved"
    assert classify_url("") == "unresolved"
    assert classify_url("https://github.com/o/r") == "hosted-url"
    assert classify_url("https://gitlab.com/o/r") == "generic-url"
    assert classify_url("https://gitlab.com/o/r", "://gitlab.com/") == "hosted-url"


def test_read_plugins(tmp_path: Path) -> None:
    root = _registry(tmp_path)
    blob = (
        "lazy.nvim|2024-05-01|/nix/store/a-lazy;"
        "lsp_lines.nvim|2024-03-01|/nix/store/b-lsp;"
        "local-only|1.0|/nix/store/c-local;"
        "not-in-registry|0|/nix/store/d"
    )

    plugins = {p.pname: p for p in read_plugins(root, blob)}

    assert plugins["lazy.nvim"].source == "hosted-url"
    assert plugins["lazy.nvim"].short_url == "folke/lazy.nvim"
    assert plugins["lazy.nvim"].path == "/nix/store/a-lazy"
    assert plugins["lsp_lines.nvim"].source == "generic-url"
    assert plugins["local-only"].source == "unresolved"
    assert plugins["local-only"].url is None
    assert plugins["not-in-registry"].source == "unresolved"


def test_read_plugins_empty_selection(tmp_path: Path) -> None:
    assert read_plugins(_registry(tmp_path), "") == []


def test_duplicate_pname_prefers_matching_version(tmp_path: Path) -> None:
    root = _registry(tmp_path)
    extra = (
        'pname = "lazy.nvim"; version = "old";\n'
        'meta.homepage = "https://example.org/lazy";\n'
    )
    (root / "extra.nix").write_text(extra, encoding="utf-8")
    files = ["extra.nix", VIM_PLUGINS_LISTING]

    index = load_registry(root, files)
    assert len(index["lazy.nvim"]) == 2

    plugins = read_plugins(root, "lazy.nvim|2024-05-01|/p", files=files)
    assert plugins[0].url == "https://github.com/folke/lazy.nvim"
    plugins = read_plugins(root, "lazy.nvim|unknown|/p", files=files)
    assert plugins[0].url == "https://example.org/lazy"


def test_missing_listing_raises(tmp_path: Path) -> None:
    with pytest.raises(RegistryAccessError, match="generated.nix"):
        load_registry(tmp_path)

from __future__ import annotations

ENTRY_SEPARATOR = ";"
FIELD_SEPARATOR = "|"
NO_KEY_MARKER = "-"

# Smallest non-empty blob still needs three field separators.
MIN_BLOB_LEN = 3

DIRECTIVE_PLUGIN = "plugin"
DIRECTIVE_STRING = "string"

DEFAULT_ENTRY_POINT = "init.lua"
DEFAULT_EXTENSIONS: tuple[str, ...] = (".lua",)
DEFAULT_HOSTED_MARKER = "://github.com/"
GITHUB_URL_PREFIX = "https://github.com/"

VIM_PLUGINS_LISTING = "pkgs/applications/editors/vim/plugins/generated.nix"
LUA_MODULES_LISTING = "pkgs/development/lua-modules/generated-packages.nix"
DEFAULT_REGISTRY_FILES: tuple[str, ...] = (VIM_PLUGINS_LISTING, LUA_MODULES_LISTING)

USAGE_DETAILS = (
    "Expected order:\n"
    "  REGISTRY  path to the nixpkgs checkout\n"
    "  INPUT     path to read the config from\n"
    "  OUTPUT    path to put the patched config\n"
    "  PLUGINS   plugins in the format `pname|version|path;pname|version|path;...`\n"
    "  SUBS      substitutions in the format `type|from|to|extra;...`\n"
    "  PROLOGUE  extra Lua config put at the top of init.lua"
)

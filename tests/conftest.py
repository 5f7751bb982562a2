"""Shared fixtures for kiln tests."""

from __future__ import annotations

from pathlib import Path

import pytest

MAIN_JS = """define(function(require, exports, module) {
  var util = require('./util');
  exports.run = function() { return util.double(2); };
});
"""

UTIL_JS = """define(function(require, exports, module) {
  exports.double = function(x) { return x * 2; };
});
"""

PAGE_JS = """define(function(require, exports, module) {
  var util = require('../util');
  var widget = require('app/widget');
  var template = require('text!./page.html');
});
"""

WIDGET_JS = """define(['util'], function(util) {
  return { name: 'widget' };
});
"""


def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create ``files`` (relative path -> content) under ``root``."""
    for relpath, content in files.items():
        path = root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    return root


@pytest.fixture
def lib_dir(tmp_path: Path) -> Path:
    """A module root with a small main -> util graph and an app package."""
    return write_tree(
        tmp_path / "lib",
        {
            "main.js": MAIN_JS,
            "util.js": UTIL_JS,
            "app/page.js": PAGE_JS,
            "app/widget.js": WIDGET_JS,
            "app/page.html": "<p>It's a page</p>\n<p>two</p>",
        },
    )


@pytest.fixture
def make_tree(tmp_path: Path):
    """Factory writing a file tree under ``tmp_path / name``."""

    def _make(name: str, files: dict[str, str | bytes]) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        return write_tree(root, files)

    return _make

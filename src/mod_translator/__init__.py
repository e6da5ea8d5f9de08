"""mod-translator: LLM translation of mod language files.

Reads the source-language JSON file of each mod archive, translates it in
batches through a chat-completions model and writes the target-language
file back into the archive.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version, read from pyproject.toml via importlib.metadata.
#
# If the package is imported without being installed (running straight
# from a source checkout), fall back to "0.0.0-dev".
# ---------------------------------------------------------------------------
try:
    __version__: str = version("mod-translator")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

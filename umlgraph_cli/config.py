"""Configuration paths and fixed names for umlgraph."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("UMLGRAPH_HOME", str(Path.home() / ".umlgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
PROJECT_CONFIG_NAME = "umlgraph.toml"

DIAGRAM_FILE_STEM = "class-diagram"
DEFAULT_OUTPUT_DIR = Path("docs") / "diagrams" / "src"
OUTPUT_SUFFIXES = {"puml": ".puml", "dot": ".dot"}

"""Sphinx configuration for gcs-auth documentation."""

import sys
from pathlib import Path

# Make the package importable without a pip install (needed for Read the Docs).
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

project = "gcs-auth"
copyright = "2026, gcs-auth contributors"
author = "gcs-auth contributors"
release = "1.0.0"

extensions = [
    "myst_parser",
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx_copybutton",
    "sphinxcontrib.mermaid",
    "sphinx_click",
]

templates_path = ["_templates"]
exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

html_theme = "furo"
html_static_path = ["_static"]

myst_enable_extensions = [
    "colon_fence",
    "deflist",
]
myst_fence_as_directive = ["mermaid"]

autodoc_member_order = "bysource"
autodoc_typehints = "description"
autodoc_mock_imports = [
    "aiohttp",
    "jwt",
    "rich",
    "yaml",
    "click",
]

napoleon_google_style = True
napoleon_numpy_style = True

mermaid_version = "11"

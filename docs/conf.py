# Sphinx configuration for the Package Guard documentation.

import os
import sys

# Make package_guard importable for autodoc without installing it
sys.path.insert(0, os.path.abspath("../src"))

from package_guard import __version__  # noqa: E402

# -- Project information -----------------------------------------------------
project = "Package Guard"
copyright = "2026, Package Guard Contributors"
author = "Package Guard Contributors"
release = __version__

# -- General configuration ---------------------------------------------------
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.intersphinx",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "myst_parser",
    "sphinxcontrib.mermaid",
]

source_suffix = {
    ".md": "markdown",
}
root_doc = "index"

# Docstrings are Google style
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True

myst_enable_extensions = [
    "colon_fence",
    "deflist",
]
myst_heading_anchors = 2

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "aiohttp": ("https://docs.aiohttp.org/en/stable", None),
}

exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

# -- Options for HTML output -------------------------------------------------
html_theme = "sphinx_rtd_theme"
html_title = f"Package Guard {release}"

# -- Autodoc settings --------------------------------------------------------
autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "undoc-members": False,
    "show-inheritance": True,
}

autodoc_typehints = "description"

# Dataclass fields are documented both as attributes and in the class docstring
suppress_warnings = ["ref.python"]

"""Sphinx configuration for Project Prioritization documentation."""

import os
import sys

sys.path.insert(0, os.path.abspath("../.."))

project = "Project Prioritization"
author = "eisenhauerIO"
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.mathjax",
    "myst_parser",
]

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
exclude_patterns = ["build"]
html_theme = "sphinx_rtd_theme"
html_theme_options = {
    "navigation_depth": 2,
}

copyright = "eisenhauerIO, MIT License"

html_context = {
    "display_github": True,
    "github_user": "eisenhauerIO",
    "github_repo": "tools-project-prioritization",
    "github_version": "main",
    "conf_py_path": "/docs/source/",
}

autodoc_member_order = "bysource"

# Configuration file for the Sphinx documentation builder.  # noqa: INP001
#
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys
from typing import Any

import sphinx_rtd_theme  # pylint: disable=unused-import  # noqa:F401

sys.path.insert(0, os.path.abspath("../.."))  # noqa: PTH100

# -- Project information -----------------------------------------------------

master_doc = "index"
project = "django-ldapsession"
copyright = "Caltech IMSS ADS"  # noqa: A001
author = "Caltech IMSS ADS"

# The full version, including alpha/beta/rc tags
release = "1.0.0"

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
    "sphinx_rtd_theme",
]

source_suffix: str = ".rst"
templates_path: list[str] = ["_templates"]
autodoc_member_order: str = "groupwise"
exclude_patterns: list[str] = ["_build"]
add_function_parentheses: bool = False
add_module_names: bool = True

intersphinx_mapping: dict[str, tuple[str, str | None]] = {
    "python": ("https://docs.python.org/3", None),
    "python-ldap": ("https://www.python-ldap.org/en/latest/", None),
    "django": (
        "http://docs.djangoproject.com/en/dev/",
        "http://docs.djangoproject.com/en/dev/_objects/",
    ),
}

# -- Options for HTML output -------------------------------------------------

html_theme: str = "sphinx_rtd_theme"
html_show_sourcelink: bool = False
html_show_sphinx: bool = False
html_show_copyright: bool = True
html_theme_options: dict[str, Any] = {"collapse_navigation": False}

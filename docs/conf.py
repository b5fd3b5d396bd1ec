# Sphinx configuration for the github-sprinter API reference

import os
import sys
sys.path.insert(0, os.path.abspath('../src'))

project = 'github-sprinter'
author = 'Trickl'
copyright = '2024, Trickl'
release = '0.1.0'
version = '.'.join(release.split('.')[:2])

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

exclude_patterns = ['_build']
html_theme = 'sphinx_rtd_theme'

# Undocumented members are left out of the reference.
autodoc_default_options = {
    'members': True,
    'member-order': 'groupwise',
    'show-inheritance': True,
}
typehints_fully_qualified = False

napoleon_google_docstring = True
napoleon_numpy_docstring = False

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pydantic': ('https://docs.pydantic.dev/latest', None),
    'pygithub': ('https://pygithub.readthedocs.io/en/stable', None),
}

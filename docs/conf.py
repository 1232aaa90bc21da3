# Configuration file for the Sphinx documentation builder.
# https://www.sphinx-doc.org/en/master/usage/configuration.html

project = 'PyMosaic'
copyright = '2026, PyMosaic developers'
author = 'PyMosaic developers'
version = '0.1.0'
release = '0.1.0'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
]

# Napoleon settings (support both Google and NumPy docstring styles)
napoleon_google_docstrings = True
napoleon_numpy_docstrings = True
napoleon_include_init_with_doc = True

# Autodoc settings
autodoc_member_order = 'bysource'
autodoc_typehints = 'description'

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store',
                    'DESIGN.md', 'SPEC_FULL.md']

# -- Options for HTML output -------------------------------------------------

html_theme = 'furo'
html_title = 'PyMosaic API Reference'

html_theme_options = {
    'light_css_variables': {
        'color-brand-primary': '#2c6e9e',
        'color-brand-content': '#1d4f73',
    },
    'dark_css_variables': {
        'color-brand-primary': '#5aa3d6',
        'color-brand-content': '#2c6e9e',
    },
}

# -- Intersphinx configuration -----------------------------------------------

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'numpy': ('https://numpy.org/doc/stable/', None),
    'scipy': ('https://docs.scipy.org/doc/scipy/', None),
    'pandas': ('https://pandas.pydata.org/docs/', None),
}

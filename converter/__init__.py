"""
File conversion package for the converter web API.

This package classifies uploaded files, routes each requested conversion to
the matching local converter (images, PDF, Word, Excel), and packs batch
results into a single archive.
"""

__version__ = "1.0.0"

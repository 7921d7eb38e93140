"""speak2image - an interactive installation that draws what visitors say."""

__version__ = "0.1.0"

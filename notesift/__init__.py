"""notesift: compound, explainable search over Markdown note vaults."""

__version__ = "0.1.0"

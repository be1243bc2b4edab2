"""Highlight PDFs, generate flashcards from highlights, and review them."""

__version__ = "0.1.0"

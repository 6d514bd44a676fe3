"""prsift - find and prioritise unresolved pull request review feedback."""

__version__ = "0.1.0"

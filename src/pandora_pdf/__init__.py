"""pandora-pdf: capture Pandora Campus books as per-chapter PDFs."""

__version__ = "0.1.0"

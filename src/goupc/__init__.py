"""Go-UPC barcode lookup command-line client."""

__version__ = "1.0.0"

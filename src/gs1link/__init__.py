"""GS1 product registry.

Registers products under their GTIN and serves the product page, barcode and
QR code behind the GS1 canonical link ``<origin>/01/<gtin>``.
"""

__version__ = "0.1.0"

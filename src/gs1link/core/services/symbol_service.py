"""Canonical link construction and barcode / QR code rendering.

Linear symbology follows what retail scanners accept: EAN-8 for 8 digits,
EAN-13 for 13 digits and Code 128 for everything else (GTIN-12 and GTIN-14).
The QR code always carries the full canonical link so any generic scanner
lands on the product page.

Rendering is deterministic: the same input always produces the same bytes.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Literal

import segno
from barcode import EAN8, EAN13, Code128
from barcode.errors import BarcodeError
from barcode.writer import SVGWriter
from loguru import logger

from src.gs1link.core.errors import MissingIdentifierError, SymbolEncodingError
from src.gs1link.core.gtin import has_valid_check_digit
from src.gs1link.runtime.config.config_data import SymbolsConfig

Symbology = Literal["ean8", "ean13", "code128"]

GTIN_APPLICATION_IDENTIFIER = "01"

_BARCODE_CLASSES = {"ean8": EAN8, "ean13": EAN13, "code128": Code128}


@dataclass(frozen=True)
class Symbol:
    """A rendered scannable symbol."""

    symbology: str
    media_type: str
    data: bytes
    filename: str


def canonical_link(origin: str, gtin: str) -> str:
    """``<origin>/01/<gtin>``, the public locator of a product."""
    return f"{origin.rstrip('/')}/{GTIN_APPLICATION_IDENTIFIER}/{gtin}"


def select_symbology(gtin: str) -> Symbology:
    if len(gtin) == 8:
        return "ean8"
    if len(gtin) == 13:
        return "ean13"
    return "code128"


class LinkEncoder:
    """Render the linear barcode and the QR code of a product."""

    def __init__(self, origin: str, config: SymbolsConfig | None = None) -> None:
        self._origin = origin.rstrip("/")
        self._config = config or SymbolsConfig()

    @property
    def origin(self) -> str:
        return self._origin

    def link_for(self, gtin: str) -> str:
        if not gtin:
            raise MissingIdentifierError()
        return canonical_link(self._origin, gtin)

    def render_barcode(self, gtin: str | None) -> Symbol:
        """Render ``gtin`` as an SVG barcode.

        Raises:
            MissingIdentifierError: no GTIN given
            SymbolEncodingError: the GTIN cannot be drawn in its symbology
        """
        if not gtin:
            raise MissingIdentifierError()

        symbology = select_symbology(gtin)
        if symbology in ("ean8", "ean13"):
            if not gtin.isascii() or not gtin.isdigit():
                raise SymbolEncodingError(f"{symbology.upper()} accepts digits only")
            if not has_valid_check_digit(gtin):
                raise SymbolEncodingError(
                    f"{gtin} has an invalid check digit for {symbology.upper()}"
                )
            # python-barcode appends the check digit itself
            code_input = gtin[:-1]
        else:
            code_input = gtin

        options = self._config.barcode
        writer_options = {
            "module_width": options.module_width,
            "module_height": options.module_height,
            "font_size": options.font_size,
            "text_distance": options.text_distance,
            "quiet_zone": options.quiet_zone,
        }

        try:
            code = _BARCODE_CLASSES[symbology](code_input, writer=SVGWriter())
            if code.get_fullcode() != gtin:
                raise SymbolEncodingError(
                    f"{symbology} rendering of {gtin} produced {code.get_fullcode()}"
                )
            buffer = io.BytesIO()
            code.write(buffer, options=writer_options)
        except (BarcodeError, ValueError, KeyError) as e:
            logger.warning("Barcode generation error for {}: {}", gtin, e)
            raise SymbolEncodingError(str(e)) from e

        return Symbol(
            symbology=symbology,
            media_type="image/svg+xml",
            data=buffer.getvalue(),
            filename=f"barcode-{gtin}.svg",
        )

    def qr_scale(self, qr: segno.QRCode) -> int:
        """Largest integer module size that keeps the image within the target width."""
        options = self._config.qr
        width, _ = qr.symbol_size(scale=1, border=options.border)
        return max(1, options.target_width // width)

    def render_qr(self, gtin: str | None, kind: Literal["png", "svg"] = "png") -> Symbol:
        """Render the canonical link of ``gtin`` as a QR code."""
        link = self.link_for(gtin or "")
        return self._render_qr_payload(link, kind=kind, gtin=gtin)

    def _render_qr_payload(
        self, payload: str, kind: Literal["png", "svg"] = "png", gtin: str | None = None
    ) -> Symbol:
        if not payload:
            raise MissingIdentifierError("No link provided")
        options = self._config.qr
        try:
            qr = segno.make_qr(payload, error=options.error, boost_error=False)
        except segno.DataOverflowError as e:
            raise SymbolEncodingError(f"Link too long for a QR code: {e}") from e

        buffer = io.BytesIO()
        qr.save(
            buffer,
            kind=kind,
            scale=self.qr_scale(qr),
            border=options.border,
            dark=options.dark,
            light=options.light,
        )
        media_type = "image/png" if kind == "png" else "image/svg+xml"
        return Symbol(
            symbology="qr",
            media_type=media_type,
            data=buffer.getvalue(),
            filename=f"qr-code-{gtin or 'link'}.{kind}",
        )

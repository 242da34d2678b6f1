from functools import lru_cache

from reportlab.graphics import renderSVG
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing


@lru_cache(maxsize=16)
def render_qr_svg(value: str, size: int = 150) -> str:
    """QR code for ``value`` as a standalone SVG document."""
    widget = QrCodeWidget(value)
    x1, y1, x2, y2 = widget.getBounds()
    width, height = x2 - x1, y2 - y1

    drawing = Drawing(
        size,
        size,
        transform=[size / width, 0, 0, size / height, 0, 0],
    )
    drawing.add(widget)
    return renderSVG.drawToString(drawing)

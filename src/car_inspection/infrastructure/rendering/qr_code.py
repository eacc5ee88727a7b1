"""QR codes pointing at a report's public page."""

from reportlab.graphics import renderSVG
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing


def build_qr_drawing(data: str, size: float = 150) -> Drawing:
    """Scale a QR widget for ``data`` into a square drawing of ``size`` points."""
    widget = QrCodeWidget(data)
    x1, y1, x2, y2 = widget.getBounds()
    width, height = x2 - x1, y2 - y1

    drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
    drawing.add(widget)
    return drawing


def render_qr_svg(data: str, size: float = 200) -> str:
    """Render a QR code as an SVG document."""
    svg = renderSVG.drawToString(build_qr_drawing(data, size))
    if isinstance(svg, bytes):
        svg = svg.decode("utf-8")
    return svg

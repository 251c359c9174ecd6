# =======================================================================================
# gatepass/integrations/credential_renderer.py - QR Credential Images
# =======================================================================================
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_H

from ..utils.exceptions import DeliveryError


class QRCredentialRenderer:
    """Turns an opaque credential token into a PNG QR code."""

    def __init__(self, box_size: int = 10, border: int = 1):
        self.box_size = box_size
        self.border = border

    def render(self, token: str) -> bytes:
        try:
            qr = qrcode.QRCode(
                version=None,
                error_correction=ERROR_CORRECT_H,
                box_size=self.box_size,
                border=self.border,
            )
            qr.add_data(token)
            qr.make(fit=True)
            img = qr.make_image(fill_color="black", back_color="white")

            buf = io.BytesIO()
            img.save(buf, format="PNG")
            return buf.getvalue()
        except Exception as e:
            raise DeliveryError(f"Failed to generate QR code image: {e}") from e

import io
import json
import secrets
import string
from datetime import datetime, timezone

import qrcode
from qrcode import constants

REF_PREFIX = "BK"
REF_ALPHABET = string.ascii_uppercase + string.digits
REF_LENGTH = 8


def make_booking_ref() -> str:
    return REF_PREFIX + "".join(secrets.choice(REF_ALPHABET) for _ in range(REF_LENGTH))


def normalize_reference(reference: str) -> str:
    return (reference or "").strip().upper()


def build_qr_payload(booking_type: str, booking_data: dict, owner_id: str, now: datetime | None = None) -> str:
    """Serialized QR payload; this string, not an image, is what gets stored."""
    ts = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return json.dumps(
        {
            "type": booking_type,
            "data": booking_data,
            "timestamp": ts.isoformat().replace("+00:00", "Z"),
            "ownerId": owner_id,
        },
        ensure_ascii=False,
    )


def render_qr_png(payload: str, box_size: int = 8, border: int = 2) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()

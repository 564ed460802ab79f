from __future__ import annotations

import io

from flask import send_file

from .processing.bitmap import EncodedImage


def send_encoded(image: EncodedImage, filename: str):
    return send_file(
        io.BytesIO(image.data),
        mimetype=image.mime_type,
        as_attachment=True,
        download_name=filename,
    )

"""QR Code generation service."""
import base64
import io
from typing import Dict

import qrcode
import qrcode.image.svg
from flask import current_app

class QRService:
    """Service for session QR code operations."""
    
    @staticmethod
    def checkin_url(session_id: int, base_url: str = None) -> str:
        """Opaque check-in target encoded in the QR code."""
        frontend_url = (base_url or current_app.config['FRONTEND_URL']).rstrip('/')
        return f"{frontend_url}/checkin/{session_id}"
    
    @staticmethod
    def _build(data: str, box_size: int = 10, border: int = 1) -> qrcode.QRCode:
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(data)
        qr.make(fit=True)
        return qr
    
    @classmethod
    def png_bytes(cls, data: str, box_size: int = 10, border: int = 2) -> bytes:
        img = cls._build(data, box_size, border).make_image(fill_color="black", back_color="white")
        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        return buffered.getvalue()
    
    @classmethod
    def svg_bytes(cls, data: str, box_size: int = 10, border: int = 2) -> bytes:
        img = cls._build(data, box_size, border).make_image(
            image_factory=qrcode.image.svg.SvgPathImage
        )
        buffered = io.BytesIO()
        img.save(buffered)
        return buffered.getvalue()
    
    @classmethod
    def generate_session_qr(cls, session_id: int) -> Dict[str, str]:
        """
        Generate QR code for a session.
        Returns: {'url', 'data_url', 'svg'}
        """
        url = cls.checkin_url(session_id)
        img_str = base64.b64encode(cls.png_bytes(url, box_size=8, border=1)).decode()
        
        return {
            'url': url,
            'data_url': f"data:image/png;base64,{img_str}",
            'svg': cls.svg_bytes(url, border=1).decode()
        }
    
    @classmethod
    def generate_qr_file(cls, session_id: int, file_format: str = 'png') -> tuple:
        """Return (content, mimetype, filename) for download."""
        url = cls.checkin_url(session_id)
        file_format = file_format.lower()
        
        if file_format == 'svg':
            content, mimetype = cls.svg_bytes(url), 'image/svg+xml'
        elif file_format == 'png':
            content, mimetype = cls.png_bytes(url, box_size=16), 'image/png'
        else:
            raise ValueError(f"Unsupported QR format: {file_format}")
        
        return content, mimetype, f"session-{session_id}-qr-code.{file_format}"

"""MediQR - hospital front-desk patient registry with QR code lookup."""
__version__ = "1.0.0"

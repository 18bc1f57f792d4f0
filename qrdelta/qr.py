# -*- coding: utf-8 -*-
"""
Lecture / génération de QR codes.
- decode_qr_from_ndarray(img_bgr) -> Optional[str]
- decode_qr_from_bytes(b: bytes) -> Optional[str]
- encode_qr_png(text, width, margin) -> bytes
OpenCV par défaut ; si `pyzbar` est installé il est utilisé en second recours.
"""
from __future__ import annotations
import importlib.util
import io
import logging
from typing import List, Optional

import cv2  # type: ignore
import numpy as np  # type: ignore
import qrcode
from PIL import Image
from qrcode.exceptions import DataOverflowError

from . import config

logger = logging.getLogger(__name__)

# -----------------------------
# Helpers
# -----------------------------

def _try_decode_opencv(img: np.ndarray, logs: List[str]) -> List[str]:
    """Essaye OpenCV en multi puis en single decode."""
    det = cv2.QRCodeDetector()
    texts: List[str] = []
    try:
        ok, decoded_info, points, _ = det.detectAndDecodeMulti(img)
        if ok and decoded_info:
            for s in decoded_info:
                if s:
                    texts.append(s.strip())
            if texts:
                logs.append(f"OpenCV multi OK: {len(texts)} code(s)")
                return texts
    except cv2.error as e:
        logs.append(f"OpenCV multi error: {e!r}")
    try:
        data, pts, _ = det.detectAndDecode(img)
        if data:
            logs.append("OpenCV single OK")
            return [data.strip()]
    except cv2.error as e:
        logs.append(f"OpenCV single error: {e!r}")
    return []

def _load_pyzbar():
    """Fonction `decode` de pyzbar, ou None si le paquet n'est pas installé."""
    if not importlib.util.find_spec("pyzbar"):
        return None
    from pyzbar.pyzbar import decode  # type: ignore
    return decode

def _try_decode_pyzbar(img_gray: np.ndarray, logs: List[str]) -> List[str]:
    """Optionnel : utilise pyzbar si installé (zbar requis)."""
    try:
        decode = _load_pyzbar()
        if decode is None:
            logs.append("pyzbar non disponible")
            return []
        res = decode(img_gray)
        out = [r.data.decode("utf-8", "ignore").strip() for r in res if r.data]
        if out:
            logs.append(f"pyzbar OK: {len(out)} code(s)")
        return out
    except Exception as e:
        # libzbar absente, PyZbarError, image refusée...
        logger.warning("pyzbar decode failed: %r", e)
        logs.append(f"pyzbar error: {e!r}")
        return []

def _dedup(texts: List[str]) -> List[str]:
    seen = set(); out = []
    for t in texts:
        t = (t or "").strip()
        if not t: continue
        if t not in seen:
            seen.add(t); out.append(t)
    return out

def _downscale(img: np.ndarray, max_side: int) -> np.ndarray:
    """Réduit les grandes images (côté max `max_side`) en gardant le ratio."""
    h, w = img.shape[:2]
    if max_side <= 0 or (h <= max_side and w <= max_side):
        return img
    scale = min(max_side / w, max_side / h)
    size = (max(1, int(w * scale)), max(1, int(h * scale)))
    return cv2.resize(img, size, interpolation=cv2.INTER_AREA)

def _variants_from_bgr(img_bgr: np.ndarray) -> List[np.ndarray]:
    """Variantes de prétraitement contre contrastes faibles / photos de travers."""
    if img_bgr.ndim == 2:
        gray = img_bgr
    else:
        gray = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2GRAY)

    vars: List[np.ndarray] = []

    def add(x): vars.append(x)

    # Base
    add(gray)

    # Contraste
    add(cv2.createCLAHE(clipLimit=3.0, tileGridSize=(8, 8)).apply(gray))

    # Netteté (unsharp)
    blur = cv2.GaussianBlur(gray, (0,0), 3)
    add(cv2.addWeighted(gray, 1.6, blur, -0.6, 0))

    # Gamma
    for g in (1.4, 2.2):
        inv = 1.0/max(g,1e-6)
        table = ((np.arange(256)/255.0) ** inv * 255.0).clip(0,255).astype("uint8")
        add(cv2.LUT(gray, table))

    # Seuils
    add(cv2.adaptiveThreshold(gray,255,cv2.ADAPTIVE_THRESH_GAUSSIAN_C,cv2.THRESH_BINARY,31,3))
    _, otsu = cv2.threshold(gray,0,255,cv2.THRESH_BINARY+cv2.THRESH_OTSU)
    add(otsu)
    _, otsu_inv = cv2.threshold(gray,0,255,cv2.THRESH_BINARY_INV+cv2.THRESH_OTSU)
    add(otsu_inv)

    # Rotations
    add(cv2.rotate(gray, cv2.ROTATE_90_CLOCKWISE))
    add(cv2.rotate(gray, cv2.ROTATE_180))

    # Upscale (QR trop petit sur la photo)
    h, w = gray.shape[:2]
    for scale in (1.5, 2.0):
        nh, nw = max(32,int(h*scale)), max(32,int(w*scale))
        add(cv2.resize(gray, (nw, nh), interpolation=cv2.INTER_CUBIC))

    # Crop central
    ch, cw = int(h*0.7), int(w*0.7)
    y0, x0 = max(0,(h-ch)//2), max(0,(w-cw)//2)
    if ch >= 32 and cw >= 32:
        add(gray[y0:y0+ch, x0:x0+cw])

    return vars

# -----------------------------
# Public API
# -----------------------------

def decode_qr_from_ndarray(img, max_side: Optional[int] = None) -> Optional[str]:
    """
    Décode le premier QR d'une image BGR (ou gray). Essaie plusieurs
    prétraitements avec OpenCV puis, si disponible, pyzbar.
    """
    logs: List[str] = []
    arr = np.array(img)
    if arr.dtype != np.uint8:
        arr = arr.astype(np.uint8, copy=False)

    if arr.ndim == 3 and arr.shape[2] == 3:
        bgr = arr
    elif arr.ndim == 2:
        bgr = cv2.cvtColor(arr, cv2.COLOR_GRAY2BGR)
    elif arr.ndim == 3 and arr.shape[2] == 4:
        bgr = cv2.cvtColor(arr, cv2.COLOR_BGRA2BGR)
    else:
        logger.warning("Unsupported image shape for QR decode: %s", arr.shape)
        return None

    bgr = _downscale(bgr, config.MAX_IMAGE_SIDE if max_side is None else max_side)
    variants = _variants_from_bgr(bgr)

    try:
        # 1) OpenCV sur chaque variante
        for v in variants:
            out = _dedup(_try_decode_opencv(v, logs))
            if out:
                return out[0]

        # 2) pyzbar si dispo (limité aux premières variantes)
        for v in variants[:6]:
            out = _dedup(_try_decode_pyzbar(v, logs))
            if out:
                return out[0]
    finally:
        logger.debug("QR decode trail: %s", " | ".join(logs) or "no attempt")

    return None

def decode_qr_from_bytes(b: bytes) -> Optional[str]:
    """Charge des bytes d'image (PNG/JPG) et applique le pipeline."""
    if not b:
        return None
    file_bytes = np.asarray(bytearray(b), dtype=np.uint8)
    img = cv2.imdecode(file_bytes, cv2.IMREAD_COLOR)
    if img is None:
        logger.info("Bytes are not a decodable image (%d bytes)", len(b))
        return None
    return decode_qr_from_ndarray(img)

# --- Génération ---

def encode_qr_png(text: str, width: Optional[int] = None, margin: Optional[int] = None) -> bytes:
    """
    Génère un QR code PNG de `width` x `width` pixels avec une marge de
    `margin` modules. Lève ValueError si le contenu est vide ou trop long.
    """
    if not text:
        raise ValueError("Contenu vide : rien à encoder")
    width = config.QR_WIDTH if width is None else int(width)
    margin = config.QR_MARGIN if margin is None else int(margin)
    if width <= 0 or margin < 0:
        raise ValueError(f"Dimensions invalides: width={width}, margin={margin}")

    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=1,
        border=margin,
    )
    qr.add_data(text)
    try:
        qr.make(fit=True)
    except DataOverflowError as exc:
        raise ValueError("Contenu trop long pour un QR code") from exc

    qr.box_size = max(1, width // (qr.modules_count + 2 * margin))
    buf = io.BytesIO()
    qr.make_image(fill_color="black", back_color="white").save(buf)
    img = Image.open(io.BytesIO(buf.getvalue())).convert("L")
    if img.size != (width, width):
        img = img.resize((width, width), Image.Resampling.NEAREST)

    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()

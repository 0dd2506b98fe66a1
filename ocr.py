import asyncio
import logging
import time
from typing import Dict, Any

import numpy as np
import cv2
import pytesseract

logger = logging.getLogger("ocr")

TESSERACT_CONFIG = r"--oem 3 --psm 6 -c preserve_interword_spaces=1"


class OcrError(Exception):
    pass


def decode_image(image_bytes: bytes) -> np.ndarray:
    np_data = np.frombuffer(image_bytes, np.uint8)
    img = cv2.imdecode(np_data, cv2.IMREAD_GRAYSCALE)
    if img is None:
        raise ValueError("Failed to decode image bytes.")
    return img


def run_tesseract(image: np.ndarray) -> Dict[str, Any]:
    data = pytesseract.image_to_data(image, output_type=pytesseract.Output.DICT, config=TESSERACT_CONFIG)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"OCR produced {len(data.get('text', []))} tokens")
    return {"data": data}


def extract_text_blocks(ocr_result: Dict[str, Any], min_conf: float) -> str:
    """Reassemble Tesseract word boxes into top-to-bottom text lines."""
    data = ocr_result["data"]
    lines = {}
    n = len(data["text"])
    for i in range(n):
        try:
            conf = float(data["conf"][i])
        except (TypeError, ValueError):
            conf = -1.0
        if conf < 0 or conf / 100.0 < min_conf:
            continue
        key = (data.get("block_num", [0] * n)[i], data.get("par_num", [0] * n)[i], data.get("line_num", [0] * n)[i])
        token = str(data["text"][i]).strip()
        if not token:
            continue
        lines.setdefault(key, "")
        lines[key] += ((" " if lines[key] else "") + token)
    return "\n".join([lines[k] for k in sorted(lines.keys()) if lines[k]])


def image_to_text(image_bytes: bytes, min_conf: float) -> str:
    return extract_text_blocks(run_tesseract(decode_image(image_bytes)), min_conf)


class OcrPool:
    """Runs Tesseract in worker threads, at most ``size`` images at a time."""

    def __init__(self, size: int = 3, timeout: float = 30.0, min_conf: float = 0.35):
        self.size = size
        self.timeout = timeout
        self.min_conf = min_conf
        self._slots = asyncio.Semaphore(size)
        self.processed = 0
        self.failed = 0
        self._total_seconds = 0.0

    async def recognize(self, image_bytes: bytes) -> str:
        async with self._slots:
            started = time.perf_counter()
            try:
                text = await asyncio.wait_for(
                    asyncio.to_thread(image_to_text, image_bytes, self.min_conf), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                self.failed += 1
                raise OcrError(f"OCR timed out after {self.timeout:.0f}s")
            except ValueError as e:
                self.failed += 1
                raise OcrError(str(e)) from e
            except pytesseract.TesseractError as e:
                self.failed += 1
                logger.exception(f"Tesseract failed: {e}")
                raise OcrError("Text recognition failed") from e
            elapsed = time.perf_counter() - started
            self.processed += 1
            self._total_seconds += elapsed
            logger.info(f"OCR finished in {elapsed:.2f}s ({len(text)} chars)")
            return text

    def stats(self) -> Dict[str, Any]:
        return {
            "pool_size": self.size,
            "processed": self.processed,
            "failed": self.failed,
            "avg_seconds": round(self._total_seconds / self.processed, 2) if self.processed else 0.0,
        }

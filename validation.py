from dataclasses import dataclass, field
from typing import List, Optional

ALLOWED_CONTENT_TYPES = {
    "image/jpeg", "image/jpg", "image/png", "image/gif", "image/bmp", "image/webp",
}
DISCORD_FILE_LIMIT_MB = 25
LARGE_FILE_WARNING_MB = 5


@dataclass
class ValidationResult:
    is_valid: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def validate_attachment(filename: str, content_type: Optional[str], size: Optional[int],
                        width: Optional[int] = None, height: Optional[int] = None,
                        max_mb: float = 10) -> ValidationResult:
    """Check an uploaded file before spending OCR time on it."""
    result = ValidationResult()

    if not content_type:
        if not filename.lower().endswith((".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp")):
            result.errors.append(f"Unsupported file: {filename}")
        else:
            result.warnings.append("Unknown file type - processing may fail")
    elif content_type.split(";")[0].strip().lower() not in ALLOWED_CONTENT_TYPES:
        result.errors.append(
            f"Unsupported file type: {content_type}. Supported types: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
        )

    size_mb = (size or 0) / (1024 * 1024)
    if size_mb > DISCORD_FILE_LIMIT_MB:
        result.errors.append(f"File size ({size_mb:.1f}MB) exceeds Discord limit ({DISCORD_FILE_LIMIT_MB}MB)")
    elif size_mb > max_mb:
        result.errors.append(f"File size ({size_mb:.1f}MB) exceeds limit ({max_mb}MB)")
    elif size_mb > LARGE_FILE_WARNING_MB:
        result.warnings.append(f"Large file size ({size_mb:.1f}MB) may take longer to process")

    if width and height:
        if width < 100 or height < 100:
            result.warnings.append("Image resolution is very low - OCR accuracy may be reduced")
        elif width > 4000 or height > 4000:
            result.warnings.append("Very high resolution image - processing may take longer")
        ratio = width / height
        if ratio > 2 or ratio < 0.3:
            result.warnings.append("Unusual image aspect ratio for a betting slip")

    result.is_valid = not result.errors
    return result

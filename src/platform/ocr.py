"""
On-device text recognition using the macOS Vision framework.

Used by the OCR capture mode: text from a captured region ends up on the
clipboard.
"""

import logging
import sys
from pathlib import Path

from src.core.errors import ProcessError, StorageError

logger = logging.getLogger(__name__)


def recognize_text_from_image(image_path: str | Path) -> str:
    """
    Recognize text in an image, one line per observation.

    Args:
        image_path: PNG or other image readable by Vision

    Returns:
        Recognized text joined with newlines

    Raises:
        StorageError: If the image does not exist
        ProcessError: If Vision is unavailable, fails, or finds no text
    """
    path = Path(image_path)
    if not path.is_file():
        raise StorageError(f"Image file does not exist: {path}")

    if sys.platform != "darwin":
        raise ProcessError("OCR is only supported on macOS")

    try:
        import Vision
        from Foundation import NSURL
    except ImportError as e:
        raise ProcessError("Vision framework not available") from e

    url = NSURL.fileURLWithPath_(str(path))
    handler = Vision.VNImageRequestHandler.alloc().initWithURL_options_(url, None)

    request = Vision.VNRecognizeTextRequest.alloc().init()
    request.setRecognitionLevel_(Vision.VNRequestTextRecognitionLevelAccurate)
    request.setUsesLanguageCorrection_(True)

    success, error = handler.performRequests_error_([request], None)
    if not success:
        raise ProcessError(f"Vision request failed: {error}")

    lines = []
    for observation in request.results() or []:
        candidates = observation.topCandidates_(1)
        if candidates:
            lines.append(str(candidates[0].string()))

    if not lines:
        raise ProcessError("No text recognized in image")

    logger.debug(f"Recognized {len(lines)} line(s) in {path.name}")
    return "\n".join(lines)

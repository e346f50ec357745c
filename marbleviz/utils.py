import io
import logging
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np
import requests
from PIL import Image

from marbleviz import config

logger = logging.getLogger(__name__)

_IMAGE_CACHE: Dict[str, np.ndarray] = {}


def is_url(image_ref: Union[str, Path]) -> bool:
    return str(image_ref).startswith(("http://", "https://"))


def load_image(image_ref: Union[str, Path], use_cache: bool = True) -> Optional[np.ndarray]:
    """
    Load a photo from a local path or an http(s) URL.

    Results are cached in memory keyed on the reference so reopening the
    editor on the same photo doesn't refetch it.

    Args:
        image_ref: File path or URL.
        use_cache: Return a cached array when available.

    Returns:
        Array of shape (H, W, 3) with values in [0, 1], or None on failure.
    """
    key = str(image_ref)
    if use_cache and key in _IMAGE_CACHE:
        return _IMAGE_CACHE[key]

    try:
        if is_url(key):
            response = requests.get(key, timeout=config.IMAGE_FETCH_TIMEOUT)
            response.raise_for_status()
            pil_img = Image.open(io.BytesIO(response.content))
        else:
            pil_img = Image.open(Path(key))
        img = np.array(pil_img.convert("RGB"), dtype=np.float32) / 255.0
    except (OSError, requests.RequestException) as exc:
        logger.warning("Could not load image %s: %s", key, exc)
        return None

    _IMAGE_CACHE[key] = img
    return img


def clear_image_cache() -> None:
    _IMAGE_CACHE.clear()

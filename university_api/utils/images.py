import logging
from pathlib import Path

from PIL import Image, ImageOps

from university_api.utils.storage import BlobStore, StoredFile

logger = logging.getLogger(__name__)

PHOTO_SIZE = (300, 300)
PHOTO_QUALITY = 80


def compress_profile_photo(store: BlobStore, stored: StoredFile) -> StoredFile:
    """
    Recorta la foto a 300x300 (cover) y la recomprime como JPEG.

    Si el procesamiento falla se conserva el archivo original.

    Returns:
        StoredFile: El archivo comprimido ('c-<nombre>.jpg') o el original
    """
    compressed_name = f"c-{Path(stored.filename).stem}.jpg"
    try:
        with Image.open(store.path_for(stored.category, stored.filename)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            fitted = ImageOps.fit(img, PHOTO_SIZE, Image.Resampling.LANCZOS)
            target = store.path_for(stored.category, compressed_name)
            fitted.save(target, "JPEG", quality=PHOTO_QUALITY)
    except Exception as e:
        logger.warning(f"Error comprimiendo foto {stored.filename}, se usa el original: {str(e)}")
        return stored

    store.delete(stored.category, stored.filename)
    return StoredFile(
        category=stored.category,
        filename=compressed_name,
        original_name=stored.original_name,
        content_type="image/jpeg",
        size=target.stat().st_size,
    )

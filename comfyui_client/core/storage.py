"""
Image Storage Manager

Stores images received from providers and serves them back.
"""

import logging
import time
from pathlib import Path
from typing import List, Dict, Any, Optional

logger = logging.getLogger(__name__)

IMAGE_EXTENSION = ".jpg"


class ImageStorage:
    """Manages storage and retrieval of received images"""

    def __init__(self, storage_dir: Path):
        """
        Initialize image storage

        Args:
            storage_dir: Directory to store images in
        """
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def image_filename(job_id: int, label: str) -> str:
        """Filename for an image: `<job_id>-<label>.jpg` where label is a number or 'final'"""
        return f"{job_id}-{label}{IMAGE_EXTENSION}"

    def write_image(self, job_id: int, label: str, data: bytes) -> Path:
        """
        Write image bytes, replacing any existing file of the same name

        Args:
            job_id: Provider job ID
            label: Image number or 'final'
            data: Image bytes

        Returns:
            Path of the written file
        """
        path = self.storage_dir / self.image_filename(job_id, label)
        path.write_bytes(data)
        logger.debug(f"Wrote {len(data)} bytes to {path}")
        return path

    def get_image_path(self, filename: str) -> Optional[Path]:
        """
        Get the local path for a stored image

        Args:
            filename: Image filename

        Returns:
            Path to image file or None if not found
        """
        if not filename or Path(filename).name != filename:
            return None
        path = self.storage_dir / filename
        if path.is_file():
            return path
        return None

    def list_images(self, job_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        List stored images

        Args:
            job_id: Only list images of this job

        Returns:
            Image info dicts sorted by filename
        """
        pattern = f"{job_id}-*{IMAGE_EXTENSION}" if job_id is not None else f"*{IMAGE_EXTENSION}"
        images = []
        for path in sorted(self.storage_dir.glob(pattern)):
            stat = path.stat()
            images.append({
                "filename": path.name,
                "local_path": str(path),
                "file_size": stat.st_size,
                "modified_at": stat.st_mtime,
            })
        return images

    def delete_image(self, filename: str) -> bool:
        """
        Delete a stored image

        Args:
            filename: Image filename

        Returns:
            True if deleted, False if not found
        """
        path = self.get_image_path(filename)
        if path:
            path.unlink()
            return True
        return False

    def cleanup_old_images(self, days: int = 7) -> int:
        """
        Delete images older than specified days

        Args:
            days: Number of days to keep images

        Returns:
            Number of deleted images
        """
        cutoff_time = time.time() - (days * 86400)
        deleted = 0

        for image_path in self.storage_dir.glob(f"*{IMAGE_EXTENSION}"):
            if image_path.is_file() and image_path.stat().st_mtime < cutoff_time:
                image_path.unlink()
                deleted += 1
                logger.info(f"Deleted old image: {image_path.name}")

        return deleted

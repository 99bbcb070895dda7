import logging
import os
import shutil
import uuid
from typing import Callable, Optional

from PIL import Image, UnidentifiedImageError

from route_obstacles.domain.errors import (
    AcquisitionError,
    CaptureCancelledError,
    PermissionDeniedError,
)
from route_obstacles.domain.providers.image_provider import ImageProvider
from route_obstacles.domain.providers.permissions import Permission, PermissionBroker

logger = logging.getLogger(__name__)

# Returns the path of the chosen or captured file, or None if the user cancelled.
ImageSourceCallback = Callable[[], Optional[str]]


class FilesystemImageProvider(ImageProvider):
    """
    Concrete ImageProvider storing obstacle photos in an app-owned directory.

    The library picker and the camera are callbacks supplied by the
    presentation layer. Whatever they return is checked with Pillow and
    copied into the image directory under a fresh uuid, so the stored
    reference stays valid even if the original file is moved or deleted.
    """

    JPEG_FORMATS = ('.jpg', '.jpeg')
    OTHER_FORMATS = ('.png', '.gif', '.bmp', '.tif', '.tiff', '.webp')
    SUPPORTED_FORMATS = JPEG_FORMATS + OTHER_FORMATS

    def __init__(
        self,
        base_directory: str,
        permissions: PermissionBroker,
        choose_from_library: ImageSourceCallback,
        capture_with_camera: ImageSourceCallback,
    ):
        """
        Initialize the provider with a base directory for stored images.

        Args:
            base_directory (str): Directory owning the copied images
            permissions (PermissionBroker): Grants library and camera access
            choose_from_library (ImageSourceCallback): Library picker
            capture_with_camera (ImageSourceCallback): Camera capture
        """
        self.base_directory = os.path.abspath(base_directory)
        os.makedirs(self.base_directory, exist_ok=True)
        self._permissions = permissions
        self._choose_from_library = choose_from_library
        self._capture_with_camera = capture_with_camera

    def pick_from_library(self) -> str:
        return self._acquire(
            Permission.MEDIA_LIBRARY, self._choose_from_library, "library"
        )

    def capture_from_camera(self) -> str:
        return self._acquire(Permission.CAMERA, self._capture_with_camera, "camera")

    def discard(self, image_uri: str) -> None:
        """
        Remove a stored image. References outside the image directory are
        left alone since this provider does not own them.

        Args:
            image_uri (str): Path returned by pick_from_library or capture_from_camera
        """
        path = os.path.abspath(image_uri)
        if os.path.dirname(path) != self.base_directory:
            logger.debug(f"Not discarding {path}: outside {self.base_directory}")
            return
        if os.path.exists(path):
            os.remove(path)
            logger.debug(f"Discarded image {path}")

    def _acquire(
        self,
        permission: Permission,
        source: ImageSourceCallback,
        source_name: str,
    ) -> str:
        if not self._permissions.request(permission):
            raise PermissionDeniedError(f"{permission.value} permission denied")

        source_path = source()
        if not source_path:
            raise CaptureCancelledError(f"No image selected from {source_name}")

        self._verify_image(source_path)
        return self._store_copy(source_path)

    def _verify_image(self, file_path: str) -> None:
        """
        Check that a file exists and is an image Pillow can identify.

        Args:
            file_path (str): Candidate image

        Raises:
            AcquisitionError: If the file is missing, unsupported or not an image
        """
        if not os.path.isfile(file_path):
            raise AcquisitionError(f"Image file not found: {file_path}")

        ext = os.path.splitext(file_path)[1].lower()
        if ext not in self.SUPPORTED_FORMATS:
            raise AcquisitionError(f"Unsupported image format: {ext or file_path}")

        try:
            with Image.open(file_path) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise AcquisitionError(f"File is not a valid image: {file_path}") from e

    def _generate_safe_filename(self, original_filename: str, image_id: uuid.UUID) -> str:
        """
        Generate a unique, safe filename for storage using the image id as base.

        Args:
            original_filename (str): Original filename of the image
            image_id (uuid.UUID): UUID for the stored image

        Returns:
            str: Filename made of the UUID and the lowercased original extension
        """
        file_ext = os.path.splitext(original_filename)[1].lower()
        return f"{image_id}{file_ext}"

    def _store_copy(self, file_path: str) -> str:
        safe_filename = self._generate_safe_filename(
            os.path.basename(file_path), uuid.uuid4()
        )
        destination_path = os.path.join(self.base_directory, safe_filename)

        try:
            shutil.copy2(file_path, destination_path)
        except OSError as e:
            raise AcquisitionError(f"Failed to store image {file_path}: {e}") from e

        logger.info(f"Stored image {file_path} as {destination_path}")
        return destination_path

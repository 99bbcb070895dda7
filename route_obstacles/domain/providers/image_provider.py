from abc import ABC, abstractmethod


class ImageProvider(ABC):
    """
    Produces local image references for obstacles.
    """

    @abstractmethod
    def pick_from_library(self) -> str:
        """
        Let the user choose an existing image.

        Returns:
            str: Local reference to the selected image

        Raises:
            PermissionDeniedError: If media library access is refused
            CaptureCancelledError: If the user dismissed the picker
            AcquisitionError: If the selection is not a usable image
        """
        pass

    @abstractmethod
    def capture_from_camera(self) -> str:
        """
        Take a new photo.

        Returns:
            str: Local reference to the captured image

        Raises:
            PermissionDeniedError: If camera access is refused
            CaptureCancelledError: If the user dismissed the camera
            AcquisitionError: If the capture is not a usable image
        """
        pass

    @abstractmethod
    def discard(self, image_uri: str) -> None:
        """
        Release an image reference previously returned by this provider.

        Args:
            image_uri (str): Reference to release

        Raises:
            OSError: If the underlying file cannot be removed
        """
        pass

"""Validated input for the classification workflows."""

from dataclasses import dataclass, field

from fastapi import status

from src.api.core.exceptions.base import PlantScanException
from src.api.core.messages import MessageCode
from src.modules.plants.images import ImagePayload, InvalidImagePayload, decode_image


@dataclass(frozen=True)
class ClassificationRequest:
    """One or more decoded images plus an optional capture location."""

    images: list[ImagePayload] = field(default_factory=list)
    latitude: float | None = None
    longitude: float | None = None

    @property
    def encoded_images(self) -> list[str]:
        return [image.encoded for image in self.images]

    @classmethod
    def from_encoded(
        cls,
        images: list[str],
        latitude: float | None = None,
        longitude: float | None = None,
        max_images: int | None = None,
    ) -> "ClassificationRequest":
        """Decode and validate raw request input.

        Raises:
            PlantScanException: 400 when the images or the location are invalid
        """
        if not images:
            raise PlantScanException(
                MessageCode.INVALID_INPUT,
                status.HTTP_400_BAD_REQUEST,
                details={"description": "At least one image is required"},
            )
        if max_images is not None and len(images) > max_images:
            raise PlantScanException(
                MessageCode.INVALID_INPUT,
                status.HTTP_400_BAD_REQUEST,
                details={"description": f"At most {max_images} images are allowed"},
            )
        if (latitude is None) != (longitude is None):
            raise PlantScanException(
                MessageCode.INVALID_INPUT,
                status.HTTP_400_BAD_REQUEST,
                details={"description": "Latitude and longitude must be sent together"},
            )
        if latitude is not None and not -90 <= latitude <= 90:
            raise PlantScanException(
                MessageCode.INVALID_INPUT,
                status.HTTP_400_BAD_REQUEST,
                details={"description": "Latitude must be between -90 and 90"},
            )
        if longitude is not None and not -180 <= longitude <= 180:
            raise PlantScanException(
                MessageCode.INVALID_INPUT,
                status.HTTP_400_BAD_REQUEST,
                details={"description": "Longitude must be between -180 and 180"},
            )

        decoded = []
        for index, encoded in enumerate(images):
            try:
                decoded.append(decode_image(encoded))
            except InvalidImagePayload as e:
                raise PlantScanException(
                    MessageCode.IMAGE_PROCESSING_ERROR,
                    status.HTTP_400_BAD_REQUEST,
                    details={"description": str(e), "image_index": index},
                ) from e

        return cls(images=decoded, latitude=latitude, longitude=longitude)

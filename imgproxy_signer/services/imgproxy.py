"""
Fluent builder for signed imgproxy URLs.

Advanced URL layout understood by imgproxy:

    /%signature/%processing_options/%encoded_source_url.%extension
    /%signature/%processing_options/plain/%source_url@%extension

Example, resize to fill 300x400 with smart gravity and convert to png:

    http://imgproxy.example.com/AfrOrF3gWeDA6VOlDG4TzxMv39O7MXnF4CXpKUwGqRM/pr:sharp/rs:fill:300:400:0/g:sm/aHR0cDovL2V4YW1w/bGUuY29tL2ltYWdl/cy9jdXJpb3NpdHku/anBn.png
"""

from typing import Any, List, Optional, Tuple, Union

from imgproxy_signer.core.config import SignatureConfiguration, settings
from imgproxy_signer.core.errors import OptionValidationError
from imgproxy_signer.core.logging import get_logger
from imgproxy_signer.schemas.options import (
    GravityType,
    ImageType,
    ResizeType,
    WatermarkPositionType,
    ensure_offset_allowed,
)
from imgproxy_signer.services.option_encoder import (
    is_byte,
    is_hex_color,
    is_quality,
    processing_option,
    trailing_args,
)
from imgproxy_signer.services.signer import assemble_url, build_path, build_plain_path

logger = get_logger("imgproxy")

# Tag used by imgproxy for focal point gravity
FOCAL_POINT = "fp"


def _invalid(message: str, field: str, value: Any) -> OptionValidationError:
    logger.debug(f"Rejected {field}={value!r}: {message}")
    return OptionValidationError(message, field=field, context={"value": value})


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid number here
    return isinstance(value, int) and not isinstance(value, bool)


class ImgproxyUrlBuilder:
    """Collects processing options and renders the final URL.

    A builder is meant to be owned by one caller and used for a single URL.
    Every option method appends one token and returns the builder, so calls
    can be chained. Nothing is reordered or deduplicated: imgproxy reads the
    options in the order they appear.
    """

    def __init__(self, configuration: SignatureConfiguration):
        self.configuration = configuration
        self._options: List[str] = []

    @classmethod
    def of(cls, configuration: SignatureConfiguration) -> "ImgproxyUrlBuilder":
        return cls(configuration)

    @property
    def options(self) -> Tuple[str, ...]:
        return tuple(self._options)

    def option(self, command: str, *args: Any) -> "ImgproxyUrlBuilder":
        """Append an arbitrary processing option, e.g. one this builder has no method for."""
        self._options.append(processing_option(command, *args))
        return self

    def size(self, width: int, height: int, enlarge: Optional[bool] = None,
             extend: Optional[bool] = None) -> "ImgproxyUrlBuilder":
        """Meta-option that defines the width, height, enlarge, and extend.

        Omitted trailing arguments are left out of the token so imgproxy uses
        its defaults.
        """
        return self.option("s", *trailing_args(width, height, enlarge, extend))

    def resize(self, resize_type: ResizeType, width: Optional[int] = None, height: Optional[int] = None,
               enlarge: Optional[bool] = None, extend: Optional[bool] = None) -> "ImgproxyUrlBuilder":
        """Meta-option that defines the resizing type, width, height, enlarge, and extend.

        Called with only a resize type this emits the standalone ``rt``
        option instead, which changes the resizing type without touching
        the size.
        """
        args = trailing_args(width, height, enlarge, extend)
        if not args:
            return self.resizing_type(resize_type)
        return self.option("rs", ResizeType(resize_type), *args)

    def resizing_type(self, resize_type: ResizeType) -> "ImgproxyUrlBuilder":
        """Defines how imgproxy will resize the source image."""
        return self.option("rt", ResizeType(resize_type))

    def width(self, width: int) -> "ImgproxyUrlBuilder":
        """Width of the resulting image, 0 derives it from height and aspect ratio."""
        return self.option("w", width)

    def height(self, height: int) -> "ImgproxyUrlBuilder":
        """Height of the resulting image, 0 derives it from width and aspect ratio."""
        return self.option("h", height)

    def dpr(self, use_dpr: bool) -> "ImgproxyUrlBuilder":
        return self.option("dpr", use_dpr)

    def enlarge(self, enlarge: bool) -> "ImgproxyUrlBuilder":
        return self.option("el", enlarge)

    def extend(self, extend: bool) -> "ImgproxyUrlBuilder":
        return self.option("ex", extend)

    def _gravity_args(self, gravity_type: GravityType, offset_x: Optional[int],
                      offset_y: Optional[int]) -> Tuple[Any, ...]:
        gravity_type = GravityType(gravity_type)
        if offset_x is None and offset_y is None:
            return (gravity_type,)
        if offset_x is None or offset_y is None:
            raise _invalid("offset_x and offset_y must be given together", "offset",
                           (offset_x, offset_y))
        ensure_offset_allowed(gravity_type)
        return gravity_type, offset_x, offset_y

    def gravity(self, gravity_type: GravityType, offset_x: Optional[int] = None,
                offset_y: Optional[int] = None) -> "ImgproxyUrlBuilder":
        """When imgproxy needs to cut some parts of the image, it is guided by the gravity.

        Offsets along X and Y are only valid for compass gravities, smart
        gravity rejects them.
        """
        return self.option("g", *self._gravity_args(gravity_type, offset_x, offset_y))

    def focal_point_gravity(self, focal_x: float, focal_y: float) -> "ImgproxyUrlBuilder":
        """Focus point gravity, x and y are in [0, 1] and mark the center of the result."""
        return self.option("g", FOCAL_POINT, float(focal_x), float(focal_y))

    def crop(self, width: int, height: int, gravity_type: Optional[GravityType] = None,
             offset_x: Optional[int] = None, offset_y: Optional[int] = None) -> "ImgproxyUrlBuilder":
        """Defines an area of the image to be processed (crop before resize).

        A width or height of 0 uses the full source dimension. Without a
        gravity type imgproxy falls back to the gravity option.
        """
        if gravity_type is None:
            if offset_x is not None or offset_y is not None:
                raise _invalid("offsets require a gravity type", "gravity_type", None)
            return self.option("c", width, height)
        return self.option("c", width, height, *self._gravity_args(gravity_type, offset_x, offset_y))

    def focal_point_crop(self, width: int, height: int, focal_x: float,
                         focal_y: float) -> "ImgproxyUrlBuilder":
        return self.option("c", width, height, FOCAL_POINT, float(focal_x), float(focal_y))

    def quality(self, percentage: int) -> "ImgproxyUrlBuilder":
        """Redefines quality of the resulting image, percentage."""
        if not _is_int(percentage) or not is_quality(percentage):
            raise _invalid("quality percentage must be between 1 and 100 inclusively",
                           "percentage", percentage)
        return self.option("q", percentage)

    def background(self, r: Union[int, str], g: Optional[int] = None,
                   b: Optional[int] = None) -> "ImgproxyUrlBuilder":
        """Fill the resulting image background with an RGB color (0-255 per channel).

        A single string argument is treated as a hex color, see
        :meth:`background_hex`.
        """
        if isinstance(r, str) and g is None and b is None:
            return self.background_hex(r)
        for name, channel in (("r", r), ("g", g), ("b", b)):
            if not _is_int(channel) or not is_byte(channel):
                raise _invalid("r, g and b values must be between 0 and 255 inclusively",
                               name, channel)
        return self.option("bg", r, g, b)

    def background_hex(self, hex_color: str) -> "ImgproxyUrlBuilder":
        """Fill the background with a hex color such as ``ffffff``."""
        if not is_hex_color(hex_color):
            raise _invalid("hex color must be a hexadecimal encoded string for 3 bytes like ffffff for white",
                           "hex_color", hex_color)
        return self.option("bg", hex_color)

    def blur(self, sigma: int) -> "ImgproxyUrlBuilder":
        return self.option("bl", sigma)

    def sharpen(self, sigma: int) -> "ImgproxyUrlBuilder":
        return self.option("sh", sigma)

    def watermark(self, opacity: float, position: Optional[WatermarkPositionType] = None,
                  offset_x: Optional[int] = None, offset_y: Optional[int] = None,
                  scale: Optional[float] = None) -> "ImgproxyUrlBuilder":
        """Puts watermark on the processed image."""
        if position is not None:
            position = WatermarkPositionType(position)
        if scale is not None:
            scale = float(scale)
        return self.option("wm", *trailing_args(float(opacity), position, offset_x, offset_y, scale))

    def preset(self, *preset_names: str) -> "ImgproxyUrlBuilder":
        """Presets to apply, as many as needed, in the given order."""
        return self.option("pr", *preset_names)

    def cachebuster(self, version: str) -> "ImgproxyUrlBuilder":
        """Changes the URL without changing the result so CDNs and browsers refetch it."""
        return self.option("cb", version)

    def filename(self, filename: str) -> "ImgproxyUrlBuilder":
        """Filename for the Content-Disposition header."""
        return self.option("fn", filename)

    def format(self, extension: Union[ImageType, str]) -> "ImgproxyUrlBuilder":
        """Specifies the resulting image format. Alias for the extension URL part."""
        return self.option("f", extension)

    def path(self, source_url: str, image_type: Optional[ImageType] = None) -> str:
        """Canonical unsigned path for the options collected so far."""
        return build_path(self._options, source_url, image_type)

    def url(self, source_url: str, image_type: Optional[ImageType] = None) -> str:
        """Render the final, signed URL with a base64 encoded source URL."""
        return self._finish(self.path(source_url, image_type))

    def plain_url(self, source_url: str, image_type: Optional[ImageType] = None) -> str:
        """Render the final, signed URL with the source URL in plain form."""
        return self._finish(build_plain_path(self._options, source_url, image_type))

    def _finish(self, path: str) -> str:
        url = assemble_url(self.configuration, path)
        logger.debug(
            f"Generated imgproxy URL with {len(self._options)} options "
            f"({'signed' if self.configuration.signed else 'unsigned'}): {path}"
        )
        return url


class ImgproxyService:
    """Entry point for host applications generating imgproxy URLs."""

    def __init__(self, configuration: Optional[SignatureConfiguration] = None):
        self.configuration = configuration or settings.signature_configuration()
        self.base_url = self.configuration.base_url

    def builder(self) -> ImgproxyUrlBuilder:
        """Return a fresh builder bound to this service's configuration."""
        return ImgproxyUrlBuilder.of(self.configuration)

    def resize_url(self, image_url: str, width: int, height: int,
                   format: Union[ImageType, str]) -> str:
        """Generate a signed URL that fits the image into width x height.

        Args:
            image_url: URL to the original image
            width: Desired width for resizing
            height: Desired height for resizing
            format: Desired output format (png, jpg, webp, ...)

        Returns:
            Signed imgproxy URL
        """
        return (
            self.builder()
            .resize(ResizeType.fit, width, height)
            .format(format)
            .url(image_url)
        )


_imgproxy_service: Optional[ImgproxyService] = None


def get_imgproxy_service() -> ImgproxyService:
    """Return the process wide service built from the environment settings."""
    global _imgproxy_service
    if _imgproxy_service is None:
        _imgproxy_service = ImgproxyService()
    return _imgproxy_service

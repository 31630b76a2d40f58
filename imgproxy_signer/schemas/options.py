from enum import Enum

from imgproxy_signer.core.errors import OptionValidationError


class GravityType(str, Enum):
    """Anchor used when imgproxy needs to cut parts of the image."""

    def __new__(cls, value: str, offset_allowed: bool = True):
        member = str.__new__(cls, value)
        member._value_ = value
        member.offset_allowed = offset_allowed
        return member

    no = "no"
    so = "so"
    ea = "ea"
    we = "we"
    noea = "noea"
    nowe = "nowe"
    soea = "soea"
    sowe = "sowe"
    ce = "ce"
    sm = ("sm", False)

    def __str__(self) -> str:
        return self.value


class ResizeType(str, Enum):
    """Defines how imgproxy will resize the source image."""

    # keep aspect ratio, fit into the given size
    fit = "fit"
    # keep aspect ratio, fill the given size and crop what sticks out
    fill = "fill"
    # fill when source and result share orientation, otherwise fit
    auto = "auto"

    def __str__(self) -> str:
        return self.value


class ImageType(str, Enum):
    """Output formats imgproxy can produce, used as the URL extension."""
    png = "png"
    jpg = "jpg"
    webp = "webp"
    avif = "avif"
    gif = "gif"
    ico = "ico"
    svg = "svg"
    heic = "heic"
    bmp = "bmp"
    tiff = "tiff"
    pdf = "pdf"
    mp4 = "mp4"

    def __str__(self) -> str:
        return self.value


class WatermarkPositionType(str, Enum):
    ce = "ce"
    no = "no"
    so = "so"
    ea = "ea"
    we = "we"
    noea = "noea"
    nowe = "nowe"
    soea = "soea"
    sowe = "sowe"
    # tile the watermark over the whole image
    re = "re"

    def __str__(self) -> str:
        return self.value


def ensure_offset_allowed(gravity_type: GravityType) -> None:
    """Raise if the gravity type cannot be combined with an explicit offset."""
    if not gravity_type.offset_allowed:
        raise OptionValidationError(
            f"{gravity_type.value} is not allowed with offset",
            field="gravity_type",
            context={"gravity_type": gravity_type.value}
        )

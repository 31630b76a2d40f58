import base64
import hashlib
import hmac
from typing import Iterable, Optional, Union

from imgproxy_signer.core.config import MAX_SIGNATURE_BYTES, SignatureConfiguration
from imgproxy_signer.core.errors import ConfigurationError, OptionValidationError
from imgproxy_signer.schemas.options import ImageType

# Signature segment used when no key/salt pair is configured
UNSIGNED_SIGNATURE = "notset"

Secret = Union[str, bytes]


def _urlsafe_b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode()


def _to_bytes(value: Secret) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def _source_bytes(source_url: str) -> bytes:
    try:
        return source_url.encode("utf-8")
    except UnicodeEncodeError as e:
        raise OptionValidationError(
            "source URL must be encodable as UTF-8",
            field="source_url",
            context={"position": e.start}
        )


def _extension(image_type: Union[ImageType, str]) -> str:
    try:
        return ImageType(image_type).value
    except ValueError:
        raise OptionValidationError(
            f"unsupported output type {image_type!r}",
            field="image_type",
            context={"value": str(image_type)}
        )


def encode_source_url(source_url: str) -> str:
    """Encode the source URL as unpadded URL-safe base64 of its UTF-8 bytes."""
    return _urlsafe_b64(_source_bytes(source_url))


def build_path(options: Iterable[str], source_url: str, image_type: Optional[ImageType] = None) -> str:
    """Build the canonical unsigned path.

    Args:
        options: Processing option tokens in the order they were added
        source_url: URL of the original image, encoded as-is
        image_type: Optional output format appended as ``.ext``

    Returns:
        Path beginning with ``/``
    """
    path = "".join(f"/{option}" for option in options)
    path += f"/{encode_source_url(source_url)}"
    if image_type is not None:
        path += f".{_extension(image_type)}"
    return path


def build_plain_path(options: Iterable[str], source_url: str, image_type: Optional[ImageType] = None) -> str:
    """Same as :func:`build_path` but with the ``/plain/<url>@ext`` source form."""
    path = "".join(f"/{option}" for option in options)
    _source_bytes(source_url)
    path += f"/plain/{source_url}"
    if image_type is not None:
        path += f"@{_extension(image_type)}"
    return path


def sign_path(path: str, key: Optional[Secret], salt: Optional[Secret],
              number_of_signature_bytes: int = MAX_SIGNATURE_BYTES) -> str:
    """Sign the path using HMAC-SHA256 with the key and salt.

    Args:
        path: Path to sign
        key: HMAC key, str is UTF-8 encoded
        salt: Prefix hashed in front of the path, str is UTF-8 encoded
        number_of_signature_bytes: Digest bytes kept before encoding

    Returns:
        URL-safe unpadded base64 signature, or ``notset`` when key or salt
        is missing
    """
    if not 1 <= number_of_signature_bytes <= MAX_SIGNATURE_BYTES:
        raise ConfigurationError(
            f"number_of_signature_bytes must be between 1 and {MAX_SIGNATURE_BYTES}",
            context={"number_of_signature_bytes": number_of_signature_bytes}
        )

    if key is None or salt is None:
        return UNSIGNED_SIGNATURE

    digest = hmac.new(_to_bytes(key), _to_bytes(salt) + path.encode("utf-8"), hashlib.sha256).digest()
    return _urlsafe_b64(digest[:number_of_signature_bytes])


def sign_url(path: str, configuration: SignatureConfiguration) -> str:
    """Compute the signature segment for a path under a configuration."""
    return sign_path(
        path,
        configuration.key_bytes,
        configuration.salt_bytes,
        configuration.number_of_signature_bytes,
    )


def assemble_url(configuration: SignatureConfiguration, path: str) -> str:
    """Join base URL, signature and path into the final absolute URL."""
    return f"{configuration.base_url}/{sign_url(path, configuration)}{path}"

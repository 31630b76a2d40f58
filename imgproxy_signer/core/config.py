import hashlib
import os
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from dotenv import load_dotenv

from imgproxy_signer.core.errors import ConfigurationError

# Load environment variables from .env file if it exists
load_dotenv()

# HMAC-SHA256 digest length; signatures can be truncated but never extended
MAX_SIGNATURE_BYTES = hashlib.sha256().digest_size


class SignatureConfiguration(BaseModel):
    """Immutable connection details for one imgproxy deployment.

    Key and salt act as a single switch: both set means signed URLs, both
    absent means the signature segment is rendered as ``notset``. Setting
    only one of them is rejected.
    """
    model_config = ConfigDict(frozen=True)

    base_url: str
    key: Optional[str] = None
    salt: Optional[str] = None
    number_of_signature_bytes: int = MAX_SIGNATURE_BYTES
    # imgproxy's own IMGPROXY_KEY / IMGPROXY_SALT are hex encoded
    hex_encoded: bool = False

    @field_validator("key", "salt", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def check_signing_pair(self):
        if (self.key is None) != (self.salt is None):
            missing = "salt" if self.salt is None else "key"
            raise ConfigurationError(
                f"Signing requires both key and salt, {missing} is missing",
                context={"base_url": self.base_url, "missing": missing}
            )

        if not 1 <= self.number_of_signature_bytes <= MAX_SIGNATURE_BYTES:
            raise ConfigurationError(
                f"number_of_signature_bytes must be between 1 and {MAX_SIGNATURE_BYTES}",
                context={"number_of_signature_bytes": self.number_of_signature_bytes}
            )

        if self.hex_encoded and self.signed:
            for name in ("key", "salt"):
                try:
                    bytes.fromhex(getattr(self, name))
                except ValueError as e:
                    raise ConfigurationError(
                        f"{name} is not a valid hex string",
                        original_exception=e
                    )
        return self

    @property
    def signed(self) -> bool:
        return self.key is not None and self.salt is not None

    @property
    def key_bytes(self) -> Optional[bytes]:
        return self._decode(self.key)

    @property
    def salt_bytes(self) -> Optional[bytes]:
        return self._decode(self.salt)

    def _decode(self, value: Optional[str]) -> Optional[bytes]:
        if value is None:
            return None
        if self.hex_encoded:
            return bytes.fromhex(value)
        return value.encode("utf-8")

    def with_signature_bytes(self, number_of_signature_bytes: int) -> "SignatureConfiguration":
        """Return a copy that truncates signatures to the given byte count."""
        return SignatureConfiguration(
            **{**self.model_dump(), "number_of_signature_bytes": number_of_signature_bytes}
        )

    def __repr__(self) -> str:
        # key and salt are never rendered
        return (
            f"SignatureConfiguration(base_url={self.base_url!r}, signed={self.signed}, "
            f"number_of_signature_bytes={self.number_of_signature_bytes}, hex_encoded={self.hex_encoded})"
        )

    __str__ = __repr__


class Settings(BaseModel):
    """Environment backed imgproxy settings."""
    imgproxy_base_url: str = Field(
        default_factory=lambda: os.getenv("IMGPROXY_BASE_URL", "http://localhost:8080")
    )
    imgproxy_key: str = Field(
        default_factory=lambda: os.getenv("IMGPROXY_KEY", "")
    )
    imgproxy_salt: str = Field(
        default_factory=lambda: os.getenv("IMGPROXY_SALT", "")
    )
    imgproxy_signature_size: int = Field(
        default_factory=lambda: int(os.getenv("IMGPROXY_SIGNATURE_SIZE", str(MAX_SIGNATURE_BYTES)))
    )
    imgproxy_key_hex: bool = Field(
        default_factory=lambda: os.getenv("IMGPROXY_KEY_HEX", "false").lower() in ("true", "1", "t")
    )

    model_config = ConfigDict()

    def signature_configuration(self) -> SignatureConfiguration:
        """Build the signing configuration described by these settings."""
        return SignatureConfiguration(
            base_url=self.imgproxy_base_url,
            key=self.imgproxy_key,
            salt=self.imgproxy_salt,
            number_of_signature_bytes=self.imgproxy_signature_size,
            hex_encoded=self.imgproxy_key_hex,
        )


# Create global settings instance
settings = Settings()

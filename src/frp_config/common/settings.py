"""Pydantic settings for the configuration converter."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SHARE_LINK_SCHEME = "frp://"


class ConverterSettings(BaseModel):
    """Behavior knobs for ConfigConverter import/export conveniences"""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )

    share_link_scheme: str = Field(
        default=DEFAULT_SHARE_LINK_SCHEME,
        min_length=4,
        description="URI scheme tag prefixed to base64 share links",
    )
    generated_name_length: int = Field(
        default=8, ge=4, le=64, description="Length of names generated on import"
    )
    accept_bare_base64: bool = Field(
        default=True,
        description="Treat an unprefixed base64 payload as a share link on import",
    )

    @field_validator("share_link_scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        """Ensure the scheme tag looks like ``name://``"""
        name, sep, rest = v.partition("://")
        if not sep or rest or not name.replace("-", "").replace("+", "").isalnum():
            raise ValueError("Share link scheme must look like 'name://'")
        return v

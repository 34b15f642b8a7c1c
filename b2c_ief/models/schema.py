"""
Resource configuration schemas.

Validates raw resource configuration handed over by the declarative framework
and turns it into domain snapshots. Mirrors the resource schemas: usage is one
of sig/enc, the generate type is RSA, and exactly one of the generate/upload
blocks must be present.
"""

from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)

from ..exceptions import ConfigurationError, InvariantError
from .key_container import GenerateSpec, KeyContainer, KeyUsage, UploadSpec
from .policy_document import PolicyDocument


def _format_errors(error: ValidationError) -> str:
    # Never echo input values: the upload block carries a secret
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
        for err in error.errors(include_input=False, include_url=False)
    )


class GenerateBlock(BaseModel):
    """Generate a new key in the key container."""

    type: Literal["RSA"] = Field(
        default="RSA",
        description="Key type. Only RSA is currently supported by Azure AD B2C.",
    )

    model_config = ConfigDict(extra="forbid")


class UploadBlock(BaseModel):
    """Upload an existing key or secret."""

    value: Optional[SecretStr] = Field(
        default=None,
        description="Raw secret value (write-only, never stored in state)",
    )
    value_version: Optional[int] = Field(
        default=None,
        description="Version tracker. Omit to always upload, 0+ to manage versions, -1 to force upload.",
    )

    model_config = ConfigDict(extra="forbid")


class KeyContainerSpec(BaseModel):
    """Manages an Azure AD B2C IEF policy key container."""

    id: str = ""
    name: str = Field(
        min_length=1,
        description="The IEF policy key container name. The B2C_1A_ prefix is not added.",
    )
    usage: Literal["sig", "enc"] = Field(
        description="Key usage: sig (signing) or enc (encryption)."
    )
    generate: Optional[GenerateBlock] = None
    upload: Optional[UploadBlock] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("usage", mode="before")
    @classmethod
    def _normalize_usage(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"signing": "sig", "encryption": "enc"}.get(value.lower(), value.lower())
        return value

    @model_validator(mode="after")
    def _exactly_one_provisioning_block(self) -> "KeyContainerSpec":
        if (self.generate is None) == (self.upload is None):
            raise ValueError("Exactly one of 'generate' or 'upload' must be specified")
        return self

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "KeyContainerSpec":
        """Validate raw configuration.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid policy key configuration: {_format_errors(e)}",
                context={"name": data.get("name")},
            ) from None

    def to_container(self) -> KeyContainer:
        provisioning: Any
        if self.generate is not None:
            provisioning = GenerateSpec(key_type=self.generate.type)
        elif self.upload is not None:
            secret = self.upload.value
            provisioning = UploadSpec(
                value=secret.get_secret_value() if secret is not None else None,
                value_version=self.upload.value_version,
            )
        else:
            raise InvariantError(
                "No provisioning method specified OR an invalid block was given"
            )
        return KeyContainer(
            id=self.id,
            name=self.name,
            usage=KeyUsage(self.usage),
            provisioning=provisioning,
        )


class PolicyDocumentSpec(BaseModel):
    """Manages an IEF custom policy rendered from an XML template."""

    file: str = Field(min_length=1, description="Path of the policy XML template.")
    app_settings: Dict[str, Optional[str]] = Field(default_factory=dict)
    publish: bool = False

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "PolicyDocumentSpec":
        """Validate raw configuration.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid policy configuration: {_format_errors(e)}"
            ) from None

    def to_document(self) -> PolicyDocument:
        return PolicyDocument(
            file=self.file,
            app_settings=dict(self.app_settings),
            publish=self.publish,
        )

"""
Key container (B2C "policy key") snapshots.

A key container is provisioned in exactly one of two modes, so ``provisioning``
is a tagged union of GenerateSpec and UploadSpec rather than two optional
blocks. The secret carried by UploadSpec is write-only: it is accepted from
desired configuration, excluded from ``repr`` and always ``None`` in the
persisted form produced by ``to_state()``.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..exceptions import ConfigurationError

# Reserved value_version meaning "upload on every reconciliation"
FORCE_UPLOAD_VERSION = -1

SUPPORTED_KEY_TYPES = ("RSA",)


class KeyUsage(str, Enum):
    """Key usage as understood by the trustFramework keySets API."""

    SIGNING = "sig"
    ENCRYPTION = "enc"

    @classmethod
    def parse(cls, value: Union[str, "KeyUsage"]) -> "KeyUsage":
        if isinstance(value, KeyUsage):
            return value
        normalized = str(value).strip().lower()
        aliases = {"signing": cls.SIGNING, "encryption": cls.ENCRYPTION}
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            raise ConfigurationError(
                f"Key usage must be one of 'sig' or 'enc', got {value!r}",
                context={"attribute": "usage"},
            ) from None


@dataclass(frozen=True)
class GenerateSpec:
    """Have Graph generate a new key inside the container."""

    key_type: str = "RSA"

    def __post_init__(self) -> None:
        if self.key_type not in SUPPORTED_KEY_TYPES:
            raise ConfigurationError(
                f"Key type must be one of {list(SUPPORTED_KEY_TYPES)}, got {self.key_type!r}",
                context={"attribute": "generate.type"},
            )


@dataclass(frozen=True)
class UploadSpec:
    """Upload caller-supplied secret material.

    ``value_version`` semantics: None uploads on every reconciliation, a value
    >= 0 uploads only when it changes, FORCE_UPLOAD_VERSION always uploads.
    """

    value: Optional[str] = field(default=None, repr=False, compare=False)
    value_version: Optional[int] = None

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def without_value(self) -> "UploadSpec":
        return UploadSpec(value=None, value_version=self.value_version)


Provisioning = Union[GenerateSpec, UploadSpec]


@dataclass(frozen=True)
class KeyContainer:
    """Desired or persisted state of one key container."""

    name: str
    usage: KeyUsage
    provisioning: Provisioning
    id: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "usage", KeyUsage.parse(self.usage))
        if not isinstance(self.provisioning, (GenerateSpec, UploadSpec)):
            raise ConfigurationError(
                "Exactly one of 'generate' or 'upload' must be specified",
                context={"name": self.name},
            )

    @property
    def generate(self) -> Optional[GenerateSpec]:
        if isinstance(self.provisioning, GenerateSpec):
            return self.provisioning
        return None

    @property
    def upload(self) -> Optional[UploadSpec]:
        if isinstance(self.provisioning, UploadSpec):
            return self.provisioning
        return None

    def with_id(self, container_id: str) -> "KeyContainer":
        return replace(self, id=container_id)

    def with_provisioning(self, provisioning: Provisioning) -> "KeyContainer":
        return replace(self, provisioning=provisioning)

    def to_state(self) -> Dict[str, Any]:
        """Serialize for persistence. The upload secret is never included."""
        generate = self.generate
        upload = self.upload
        return {
            "id": self.id,
            "name": self.name,
            "usage": self.usage.value,
            "generate": {"type": generate.key_type} if generate else None,
            "upload": (
                {"value": None, "value_version": upload.value_version}
                if upload
                else None
            ),
        }

    @classmethod
    def from_state(cls, data: Dict[str, Any]) -> "KeyContainer":
        """Rebuild a snapshot from its persisted (or legacy) dict form.

        Raises:
            ConfigurationError: If both or neither provisioning blocks are present
        """
        generate = data.get("generate")
        upload = data.get("upload")
        if (generate is None) == (upload is None):
            raise ConfigurationError(
                "Exactly one of 'generate' or 'upload' must be specified",
                context={"name": data.get("name")},
            )
        provisioning: Provisioning
        if generate is not None:
            provisioning = GenerateSpec(key_type=generate.get("type") or "RSA")
        else:
            provisioning = UploadSpec(
                value=upload.get("value"),
                value_version=upload.get("value_version"),
            )
        return cls(
            id=data.get("id") or "",
            name=data["name"],
            usage=data["usage"],
            provisioning=provisioning,
        )

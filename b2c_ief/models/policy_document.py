"""IEF policy document snapshots."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

from ..policy.policy_id import get_policy_id


@dataclass(frozen=True)
class PolicyDocument:
    """Desired or persisted state of one trustFramework policy.

    ``xml`` is the fully injected document and ``id`` is derived from it; use
    ``with_xml`` so the two never drift apart.
    """

    file: str
    app_settings: Mapping[str, Optional[str]] = field(default_factory=dict)
    publish: bool = False
    xml: str = ""
    id: str = ""

    def with_xml(self, xml: str) -> "PolicyDocument":
        return replace(self, xml=xml, id=get_policy_id(xml))

    def to_state(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "file": self.file,
            "app_settings": dict(self.app_settings),
            "publish": self.publish,
            "xml": self.xml,
        }

    @classmethod
    def from_state(cls, data: Dict[str, Any]) -> "PolicyDocument":
        xml = data.get("xml") or ""
        return cls(
            file=data.get("file") or "",
            app_settings=dict(data.get("app_settings") or {}),
            publish=bool(data.get("publish", False)),
            xml=xml,
            id=get_policy_id(xml) if xml else "",
        )

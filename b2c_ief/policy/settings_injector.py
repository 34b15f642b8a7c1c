"""
App settings injection for IEF policy templates.

Template authors write ``{settings:NAME}`` wherever a tenant specific value
belongs. NAME is matched case-insensitively against the configured settings
(the ``settings`` keyword too), and each placeholder is replaced by the literal
value in a single pass, so inserted text is never rescanned.
"""

import re
from typing import Dict, Mapping, Optional

import structlog

logger = structlog.get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{settings:([^{}]*)\}", re.IGNORECASE)


def _build_lookup(app_settings: Mapping[str, Optional[str]]) -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    seen: Dict[str, str] = {}
    for key, value in app_settings.items():
        if value is None or value == "":
            logger.warning("App setting is null or empty", key=key)
            continue
        folded = key.lower()
        if folded in seen:
            logger.warning(
                "App setting names collide ignoring case, last one wins",
                key=key,
                previous=seen[folded],
            )
        seen[folded] = key
        lookup[folded] = value
        logger.debug("App setting found", key=key)
    return lookup


def inject_app_settings(
    template: str, app_settings: Mapping[str, Optional[str]]
) -> str:
    """
    Replace ``{settings:NAME}`` placeholders in ``template``.

    Args:
        template: Raw policy XML
        app_settings: Setting name to value. None or empty values are skipped
            and their placeholders are left as they are.

    Returns:
        The template with every known placeholder substituted. Placeholders
        naming an unknown (or skipped) setting are preserved verbatim.
    """
    lookup = _build_lookup(app_settings)
    if not lookup:
        return template

    def _replace(match: "re.Match[str]") -> str:
        return lookup.get(match.group(1).lower(), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_replace, template)

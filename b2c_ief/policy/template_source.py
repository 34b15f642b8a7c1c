"""Load IEF policy templates from disk."""

from pathlib import Path

import structlog

from ..exceptions import ConfigurationError, TemplateNotFoundError

logger = structlog.get_logger(__name__)


def load_template(path: str) -> str:
    """Read a policy template as UTF-8 text.

    Raises:
        ConfigurationError: If no path is configured
        TemplateNotFoundError: If the file is missing or unreadable
    """
    if not path:
        raise ConfigurationError("XML is not defined and file path is not defined!")

    template_path = Path(path)
    if not template_path.exists():
        raise TemplateNotFoundError(f"File path {path} does not exist", path=path)
    try:
        return template_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error reading file!", path=path, error=str(e))
        raise TemplateNotFoundError(f"Invalid Path! {path}", path=path, cause=e) from e

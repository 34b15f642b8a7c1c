"""Extract the PolicyId of an IEF policy document."""

from xml.etree.ElementTree import ParseError, XMLPullParser

import structlog

logger = structlog.get_logger(__name__)

POLICY_ID_ATTRIBUTE = "PolicyId"


def _local_name(name: str) -> str:
    # ElementTree spells namespaced names as "{uri}local"
    return name.rsplit("}", 1)[-1]


def get_policy_id(xml_text: str) -> str:
    """
    Return the PolicyId attribute of the first element in ``xml_text``.

    Only the first start element is inspected, even if nested elements carry a
    PolicyId of their own. Malformed input never raises: parsing stops at the
    first error and whatever was found by then (usually "") is returned.
    """
    parser = XMLPullParser(events=("start",))
    try:
        # expat only accepts an XML declaration at the very start of the input
        parser.feed(xml_text.lstrip("\ufeff \t\r\n"))
        for _event, element in parser.read_events():
            for name, value in element.attrib.items():
                if _local_name(name) == POLICY_ID_ATTRIBUTE:
                    return value
            logger.debug("policy_id.missing", element=_local_name(element.tag))
            return ""
    except ParseError as e:
        logger.debug("policy_id.parse_error", error=str(e))
    return ""

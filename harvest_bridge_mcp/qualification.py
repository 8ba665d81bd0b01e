"""
Qualification parsing.

A qualification is the query template attached to a bridge request. The
host embeds bound parameters in it as placeholders; resolving the template
replaces each placeholder with the literal value of its parameter and leaves
the surrounding text alone. No escaping happens here: values that end up in
the URL's query string are encoded later, and values consumed as path
segments are never encoded.
"""

import re
from typing import Dict, Optional, Protocol

import structlog

from .errors import ParameterResolutionError

logger = structlog.get_logger(__name__)


class QualificationParser(Protocol):
    """Contract for turning a qualification template into a flat query string."""

    def resolve(self, template: Optional[str], parameters: Dict[str, str]) -> str:
        ...


class BridgeQualificationParser:
    """
    Resolves the bridge host's placeholder syntax: <%=parameter["name"]%>

    Example:
        >>> BridgeQualificationParser().resolve(
        ...     'project_id=<%=parameter["Project"]%>', {"Project": "9"}
        ... )
        'project_id=9'
    """

    PLACEHOLDER = re.compile(r'<%=\s*parameter\[\s*"(?P<name>[^"]*)"\s*\]\s*%>')

    def resolve(self, template: Optional[str], parameters: Dict[str, str]) -> str:
        if not template:
            return ""

        def substitute(match: "re.Match[str]") -> str:
            name = match.group("name")
            if name not in parameters or parameters[name] is None:
                logger.warning("qualification_parameter_unbound", parameter=name)
                raise ParameterResolutionError(name)
            return str(parameters[name])

        return self.PLACEHOLDER.sub(substitute, template)

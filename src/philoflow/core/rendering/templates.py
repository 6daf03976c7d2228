"""Key-substitution templates.

Templates reference values of the rendering context data with
``{{name}}`` placeholders, where ``name`` may contain letters, digits,
underscores, hyphens and dots (e.g. ``{{item-nr}}``, ``{{group.title}}``).

Placeholders are resolved in two steps:
1. SUBSTITUTE - replace each placeholder whose name is a data key
2. VALIDATION - any placeholder left is an error (never blanked)

Values that are lists or dicts cannot be substituted and count as
unresolved.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Set

from philoflow.core.exceptions import TemplateFillError

PLACEHOLDER_PATTERN = re.compile(r"\{\{([a-zA-Z_][\w.\-]*)\}\}")

# Anything looking like a placeholder, well-formed or not
UNRESOLVED_PATTERN = re.compile(r"\{\{[^}]+\}\}")


@dataclass
class FillReport:
    """What happened while filling a template."""

    substituted: Set[str] = field(default_factory=set)
    missing: List[str] = field(default_factory=list)


def _format_value(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


class TemplateFiller:
    """Fill ``{{name}}`` templates from a data mapping.

    Example:
        filler = TemplateFiller()
        filler.fill("<div n=\"{{item-nr}}\">", {"item-nr": 3})
        # '<div n="3">'
    """

    def fill(
        self,
        template: Optional[str],
        data: Mapping[str, Any],
        report: Optional[FillReport] = None,
    ) -> str:
        """Fill the template with values from ``data``.

        Args:
            template: Template text; None yields an empty string.
            data: Values by name.
            report: Optional report collecting substituted and missing names.

        Returns:
            The filled template.

        Raises:
            TemplateFillError: if any placeholder cannot be resolved.
        """
        if not template:
            return ""
        report = report if report is not None else FillReport()

        def replacer(match: re.Match[str]) -> str:
            name = match.group(1)
            value = _format_value(data.get(name)) if name in data else None
            if value is None:
                if name not in report.missing:
                    report.missing.append(name)
                return match.group(0)  # keep original for validation
            report.substituted.add(name)
            return value

        result = PLACEHOLDER_PATTERN.sub(replacer, template)

        # malformed placeholders in the template itself
        for marker in UNRESOLVED_PATTERN.findall(template):
            if PLACEHOLDER_PATTERN.fullmatch(marker):
                continue
            name = marker[2:-2].strip()
            if name not in report.missing:
                report.missing.append(name)

        if report.missing:
            raise TemplateFillError(report.missing, template=template)
        return result


_default_filler = TemplateFiller()


def fill_template(template: Optional[str], data: Mapping[str, Any]) -> str:
    """Fill a template with the module's default filler."""
    return _default_filler.fill(template, data)


__all__ = ["FillReport", "TemplateFiller", "fill_template", "PLACEHOLDER_PATTERN"]

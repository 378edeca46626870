"""
Placeholder Template Engine

Expands ``<...>`` placeholders in format strings. A placeholder lists one or
more ``|``-separated alternatives; each alternative is an optional run of
``#`` characters (minimum width, zero padded) followed by a variable name:

    <###index>            -> "007" for index=7
    <pagetitle|host>      -> pagetitle if non-empty, else host
    <name>                -> literal "name" when no such variable exists

There are no loops, conditionals or nested expressions.
"""

import re
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from dlkit.core.exceptions import TemplateError
from dlkit.paths import sanitize_path


PLACEHOLDER_RE = re.compile(r'<([^>]+)>')
PAD_CHAR = '0'

DEFAULT_PRESETS = {
    'flat': "<name><ext>",
    'indexed': "<###index>-<name><ext>",
    'by_host': "<host>/<name><ext>",
    'by_page': "<host>/<pagetitle|host>/<###index>-<name><ext>",
    'dated': "<date>/<name><ext>",
}


class VariableTable(Mapping[str, str]):
    """
    Case-insensitive, read-only table of template variables.

    Keys are lower-cased once, on construction. Values are stored as strings:
    ``None`` becomes ``""`` and anything else goes through ``str()``.
    """

    def __init__(self, variables: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        self._data: Dict[str, str] = {}
        for source in (variables or {}, kwargs):
            for key, value in source.items():
                self._data[str(key).lower()] = "" if value is None else str(value)

    @classmethod
    def coerce(cls, variables: Optional[Mapping[str, Any]]) -> "VariableTable":
        if isinstance(variables, VariableTable):
            return variables
        return cls(variables)

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"VariableTable({self._data!r})"


@dataclass(frozen=True)
class Alternative:
    """One ``#*name`` choice within a placeholder."""

    pad_width: int
    name: str

    @classmethod
    def parse(cls, text: str) -> "Alternative":
        name = text.lstrip('#')
        return cls(pad_width=len(text) - len(name), name=name)

    def __str__(self) -> str:
        return '#' * self.pad_width + self.name


@dataclass(frozen=True)
class Placeholder:
    """An ordered list of alternatives parsed from one ``<...>`` span."""

    alternatives: Tuple[Alternative, ...]
    raw: str = ""

    @classmethod
    def parse(cls, inner: str) -> "Placeholder":
        """Parse the text between ``<`` and ``>``."""
        alternatives = tuple(Alternative.parse(part) for part in inner.split('|'))
        return cls(alternatives=alternatives, raw=f"<{inner}>")

    def resolve(self, variables: VariableTable) -> str:
        """
        Resolve the placeholder against a variable table.

        Alternatives are tried left to right. A name missing from the table
        ends the search and yields the name itself as literal text; a name
        whose value is empty falls through to the next alternative.

        Raises:
            TemplateError: If the placeholder has no alternatives
        """
        if not self.alternatives:
            raise TemplateError("Placeholder has no alternatives", template=self.raw)

        for alternative in self.alternatives:
            if alternative.name not in variables:
                return alternative.name
            value = variables[alternative.name]
            if len(value) > 0:
                return value.rjust(alternative.pad_width, PAD_CHAR)
        return ""


def parse(template: str) -> List[Placeholder]:
    """Return the placeholders of a template in order of appearance."""
    return [Placeholder.parse(m.group(1)) for m in PLACEHOLDER_RE.finditer(template)]


def expand(template: str, variables: Optional[Mapping[str, Any]] = None) -> str:
    """
    Expand every placeholder of ``template`` using ``variables``.

    Examples:
        >>> expand("<a|b>", {"b": "y"})
        'a'
        >>> expand("img-<##idx>", {"idx": 7})
        'img-07'
    """
    table = VariableTable.coerce(variables)
    return PLACEHOLDER_RE.sub(lambda m: Placeholder.parse(m.group(1)).resolve(table), template)


class TemplateEngine:
    """
    Placeholder template engine for download paths.

    Wraps :func:`expand` with named presets, template validation and a
    ``render`` helper that turns the expansion into a sanitized path.
    """

    def __init__(self, presets: Optional[Mapping[str, str]] = None, replacement: str = "_"):
        """
        Initialize the template engine.

        Args:
            presets: Named templates; defaults to DEFAULT_PRESETS
            replacement: Replacement for invalid characters in ``render``
        """
        self.logger = logging.getLogger(__name__)
        self.replacement = replacement
        source = DEFAULT_PRESETS if presets is None else presets
        self.presets = {name.lower(): template for name, template in source.items()}

    def expand(self, template: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """
        Expand a template without any post-processing.

        Args:
            template: Format string with ``<...>`` placeholders
            variables: Variable values, keys matched case-insensitively

        Returns:
            The expanded string
        """
        result = expand(template, variables)
        self.logger.debug(f"Expanded template {template!r} -> {result!r}")
        return result

    def render(self, template: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Expand a template and sanitize the result as a relative path."""
        return sanitize_path(self.expand(template, variables), self.replacement)

    def parse(self, template: str) -> List[Placeholder]:
        """Return the placeholders of a template."""
        return parse(template)

    def variables(self, template: str) -> List[str]:
        """
        Return the distinct variable names a template refers to.

        Names are lower-cased and listed in order of first use.
        """
        names: List[str] = []
        for placeholder in parse(template):
            for alternative in placeholder.alternatives:
                name = alternative.name.lower()
                if name and name not in names:
                    names.append(name)
        return names

    def validate_template(self, template: str) -> List[str]:
        """
        Validate a template string.

        Args:
            template: Template string to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if '<>' in template:
            errors.append("Template contains an empty placeholder '<>'")

        # Whatever remains after removing placeholders must not hold brackets
        literal_text = PLACEHOLDER_RE.sub('', template)
        unmatched = literal_text.replace('<>', '')
        if '<' in unmatched or '>' in unmatched:
            errors.append("Template contains an unbalanced '<' or '>'")

        for placeholder in parse(template):
            if any(not alternative.name for alternative in placeholder.alternatives):
                errors.append(f"Placeholder {placeholder.raw} has an empty alternative")

        forbidden = sorted(set(re.findall(r'[*":|?]', literal_text)))
        if forbidden:
            errors.append(f"Template contains forbidden characters: {''.join(forbidden)}")

        if any(segment == '..' for segment in re.split(r'[/\\]', template)):
            errors.append("Template contains path traversal pattern ('..')")

        return errors

    def get_preset(self, preset_name: str) -> Optional[str]:
        """
        Get a predefined template preset.

        Args:
            preset_name: Name of the preset

        Returns:
            Template string or None if preset doesn't exist
        """
        return self.presets.get(preset_name.lower())

    def list_presets(self) -> List[str]:
        """Get list of available preset names."""
        return list(self.presets.keys())

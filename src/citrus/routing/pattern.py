"""Path template compiler.

Turns a declarative path template into an anchored, case-insensitive
regular expression plus the ordered list of parameter names its capture
groups bind to.

Template grammar, one ``/``-delimited segment at a time (empty segments
are skipped, so ``//a///b`` compiles like ``/a/b``)::

    "**"        zero or more remaining segments, one slash-joined capture
    "*"         one optional segment (may be empty)
    ":name"     one non-empty segment bound to ``name``
    "img*.png"  literal pieces around optional no-slash captures; every
                asterisk of the segment shares a single positional name
    "users"     literal, matched exactly (case-insensitively)

Wildcards bind to positional names: the running count of bound segments
at the point the wildcard appears. Names can be supplied explicitly with
the pair form ``("/files/**", ["path"])``; an explicit entry wins over the
extracted one at the same position unless it is ``None``.

A mixed segment with several asterisks has several capture groups but
only one name, so every later name binds one capture early and the
leftover capture gets a positional name. ``/a*b*c/:id`` against
``/a1b2c/7`` binds ``{0: "1", "id": "2", 2: "7"}`` and the handler is
called with three arguments. Use a raw pattern with explicit names when
that shift matters.

A template starting with ``^`` is a raw pattern: it is used as-is (a
closing ``$`` is added when missing) and its names come only from the
explicit list.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from citrus.errors import ConfigurationError

RAW_PATTERN_PREFIX = "^"

# Sub-patterns. Each wildcard contributes exactly one capture group.
_DOUBLE_ASTERISK = r"(?:/(.*))?"
_SINGLE_ASTERISK = r"(?:/([^/]*))?"
_NAMED = r"/([^/]+)"
_INLINE_ASTERISK = r"(?:([^/]*))?"
_TRAILING_SLASH = r"/?"

_NAMED_SEGMENT = re.compile(r"^:([^:]+)$")

type ParamName = str | int


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """A compiled path matcher.

    ``template`` is the declaration it was compiled from. ``source`` returns
    the regex source, so two compilations of the same template can be
    compared byte for byte.
    """

    regex: re.Pattern[str]
    names: tuple[ParamName, ...]
    template: str

    @property
    def source(self) -> str:
        return self.regex.pattern

    def match(self, path: str) -> re.Match[str] | None:
        return self.regex.match(path)


def split_path_or_pair(
    path_or_pair: str | Sequence[object],
) -> tuple[str, list[ParamName | None]]:
    """Normalize the route declaration forms into ``(template, names)``.

    Accepts a plain template or a ``(template, names)`` pair.
    """
    if isinstance(path_or_pair, str):
        return path_or_pair, []
    items = list(path_or_pair)
    if not items or not isinstance(items[0], str):
        msg = f"Route path must be a string or a (pattern, names) pair, got {path_or_pair!r}"
        raise ConfigurationError(msg)
    names = list(items[1]) if len(items) > 1 and items[1] is not None else []
    return items[0], names


def compile_path(
    template: str,
    names: Sequence[ParamName | None] | None = None,
) -> CompiledPattern:
    """Compile *template* into a ``CompiledPattern``.

    Raises ``ConfigurationError`` only for invalid raw patterns; every
    template is accepted.
    """
    explicit = list(names or [])

    if template.startswith(RAW_PATTERN_PREFIX):
        return CompiledPattern(
            regex=_compile_raw(template),
            names=_positional(explicit),
            template=template,
        )

    if template in ("", "/"):
        return CompiledPattern(
            regex=re.compile(rf"^{_TRAILING_SLASH}$", re.IGNORECASE),
            names=_positional(explicit),
            template=template,
        )

    parsed: list[str] = []
    bound: list[ParamName | None] = list(explicit)
    count = 0

    for segment in template.split("/"):
        if not segment:
            continue

        name: ParamName | None = None
        if segment == "**":
            parsed.append(_DOUBLE_ASTERISK)
            name = count
        elif segment == "*":
            parsed.append(_SINGLE_ASTERISK)
            name = count
        elif (named := _NAMED_SEGMENT.match(segment)) is not None:
            parsed.append(_NAMED)
            name = named.group(1)
        elif "*" in segment:
            pieces = [re.escape(piece) for piece in segment.split("*")]
            parsed.append("/" + _INLINE_ASTERISK.join(pieces))
            name = count
        else:
            parsed.append("/" + re.escape(segment))

        if name is None:
            continue
        if count >= len(bound):
            bound.extend([None] * (count + 1 - len(bound)))
        if bound[count] is None:
            bound[count] = name
        count += 1

    source = "^" + "".join(parsed) + _TRAILING_SLASH + "$"
    return CompiledPattern(
        regex=re.compile(source, re.IGNORECASE),
        names=_positional(bound),
        template=template,
    )


def _positional(names: Sequence[ParamName | None]) -> tuple[ParamName, ...]:
    """Fill unnamed slots with their positional index."""
    return tuple(index if name is None else name for index, name in enumerate(names))


def _compile_raw(pattern: str) -> re.Pattern[str]:
    if not pattern.endswith("$"):
        pattern += "$"
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        msg = f"Invalid route pattern {pattern!r}: {exc}"
        raise ConfigurationError(msg) from exc

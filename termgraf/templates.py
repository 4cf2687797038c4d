"""Query templating.

Query files are Jinja2 templates rendered with a fixed parameter record:

    from(bucket: "telegraf")
      |> range(start: {{ range.start }}, stop: {{ range.stop }})
      |> aggregateWindow(every: {{ window.every }}, fn: mean)

The parameters do not follow wall-clock time; a sliding window has to be
expressed with the relative offsets in the query itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from jinja2 import Environment, StrictUndefined, Template, TemplateSyntaxError

from termgraf.errors import ConfigError, TemplateRenderError
from termgraf.providers import Widget

_ENV = Environment(
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class TemplateRange:
    start: str = "-40s"
    stop: str = "-10s"


@dataclass(frozen=True)
class TemplateWindow:
    every: str = "1s"


@dataclass(frozen=True)
class TemplateData:
    """Parameters available to query templates."""

    range: TemplateRange = field(default_factory=TemplateRange)
    window: TemplateWindow = field(default_factory=TemplateWindow)


DEFAULT_TEMPLATE_DATA = TemplateData()


def compile_template(text: str, name: str = "main") -> Template:
    """Compile query template text, raising ConfigError on syntax errors."""
    try:
        return _ENV.from_string(text)
    except TemplateSyntaxError as e:
        raise ConfigError(f"{name}: line {e.lineno}: {e.message}") from e


def render_query(widget: Widget, data: TemplateData = DEFAULT_TEMPLATE_DATA) -> str:
    """Return the literal query text for a widget.

    Widgets without a compiled template use their query text as-is.
    """
    if widget.template is None:
        return widget.query
    try:
        return widget.template.render(range=data.range, window=data.window)
    except Exception as e:
        raise TemplateRenderError(f"{widget.title or widget.query}: {e}") from e

"""HTML rendering for forecast pages.

Pages are produced by a ``TemplateRenderer``. The built in
``BasicRenderer`` emits plain, unstyled HTML; deployments wanting the
full site plug in their own renderer.
"""

from html import escape
from typing import Any
from typing import Protocol


class TemplateRenderer(Protocol):
    def render(self, template: str, context: dict[str, Any]) -> str:
        ...

def _rows(values: dict[str, Any]) -> str:
    return "".join(
        f"<tr><th>{escape(str(key))}</th><td>{escape(str(value))}</td></tr>"
        for key, value in values.items()
    )

class BasicRenderer:
    """Minimal renderer for the index and forecast pages."""

    def render(self, template: str, context: dict[str, Any]) -> str:
        if template == "forecast.html":
            body = self._forecast(context)
        elif template == "index.html":
            body = self._index(context)
        else:
            raise KeyError(f"Unknown template {template!r}")
        return f"<!DOCTYPE html><html><head><meta charset=\"utf-8\"></head><body>{body}</body></html>"

    def _forecast(self, context: dict[str, Any]) -> str:
        forecast = context["forecast"]
        status = "Current forecast" if context["is_current"] else "This forecast has expired"
        ratings = {
            kind: rating["value"] for kind, rating in forecast["hazard_ratings"].items()
        }
        problems = "".join(
            f"<li>{escape(problem['kind'])}"
            + (f" ({escape(problem['probability'])})" if problem.get("probability") else "")
            + "</li>"
            for problem in forecast["avalanche_problems"]
        )
        texts = "".join(
            f"<h2>{escape(section.replace('_', ' ').title())}</h2><p>{escape(text)}</p>"
            for section in ("description", "recent_observations", "weather_forecast", "forecast_changes")
            for text in (forecast.get(section) or {}).values()
        )
        return (
            f"<h1>{escape(forecast['area'])}</h1>"
            f"<p>{escape(status)}</p>"
            f"<p>Issued {escape(context['formatted_time'])} by "
            f"{escape(forecast['forecaster']['name'])} ({escape(forecast['forecaster']['organisation'])})</p>"
            f"<p>Valid until {escape(context['formatted_valid_until'])}</p>"
            f"<table>{_rows(ratings)}</table>"
            f"<ul>{problems}</ul>"
            f"{texts}"
        )

    def _index(self, context: dict[str, Any]) -> str:
        items = []
        for group in context["forecasts"]:
            links = " ".join(
                f"<a href=\"/forecasts/{escape(file['name'])}\">{escape(file['language'] or file['name'])}</a>"
                for file in group["files"]
            )
            items.append(
                f"<li>{escape(group['area'])} {escape(group['time'])} "
                f"{escape(group['forecaster'])}: {links}</li>"
            )
        return f"<h1>Forecasts</h1><ul>{''.join(items)}</ul>"

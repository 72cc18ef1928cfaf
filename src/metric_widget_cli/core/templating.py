# src/metric_widget_cli/core/templating.py
"""
Typed placeholder substitution for CloudWatch metric widget templates.

A template is a JSON document (see the GetMetricWidgetImage "MetricWidget"
structure) whose string values may carry `{{SLOT}}` tokens:

    {
      "title": "{{NAMESPACE}} {{TITLE}} ({{REGION}})",
      "region": "{{REGION}}",
      "period": "{{PERIOD}}",
      "start": "{{PERIOD_START}}",
      "metrics": [["{{NAMESPACE}}", "Retries", "Account", "{{ACCOUNT_ID}}"]]
    }

A string that is exactly one token is replaced by the typed value, so
"{{PERIOD}}" above becomes the integer 3600. Tokens embedded in longer text
are replaced by the value's text form. Unknown tokens are rejected instead of
being sent to CloudWatch.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from metric_widget_cli.config import TIMESTAMP_FORMAT
from metric_widget_cli.core.exceptions import TemplateError
from metric_widget_cli.core.models import AccountDescriptor, FetchOptions, Slot

logger = logging.getLogger(__name__)

SlotValue = Union[str, int, datetime]

_TOKEN_RE = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")

_SLOT_TYPES: dict[Slot, type] = {
    Slot.ACCOUNT_ID: str,
    Slot.REGION: str,
    Slot.NAMESPACE: str,
    Slot.TITLE: str,
    Slot.PERIOD: int,
    Slot.PERIOD_START: datetime,
    Slot.PERIOD_END: datetime,
}


def load_template(path) -> dict:
    """Reads a widget template file and parses it as a JSON object."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateError(f"Unable to read template file {path}: {e}") from e

    try:
        template = json.loads(text)
    except json.JSONDecodeError as e:
        raise TemplateError(f"{path}: invalid JSON: {e}") from e

    if not isinstance(template, dict):
        raise TemplateError(f"{path}: widget template must be a JSON object, got {type(template).__name__}")
    return template


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def validate_substitutions(substitutions: dict[Slot, SlotValue]) -> None:
    """Checks each provided value against the type its slot expects."""
    for slot, value in substitutions.items():
        expected = _SLOT_TYPES[slot]
        # bool is an int subclass but never a valid period.
        if isinstance(value, bool) or not isinstance(value, expected):
            raise TemplateError(
                f"Slot {slot.token} expects {expected.__name__}, got {type(value).__name__}"
            )
        if expected is str and not value.strip():
            raise TemplateError(f"Slot {slot.token} must not be empty")
        if expected is int and value <= 0:
            raise TemplateError(f"Slot {slot.token} must be a positive integer, got {value}")
        if expected is datetime and value.tzinfo is None:
            raise TemplateError(f"Slot {slot.token} needs a timezone-aware timestamp")


def build_substitutions(
    account: AccountDescriptor,
    options: FetchOptions,
    now: Optional[datetime] = None,
) -> dict[Slot, SlotValue]:
    """Computes the typed value of every slot for one account."""
    now = now or datetime.now(timezone.utc)
    substitutions: dict[Slot, SlotValue] = {
        Slot.ACCOUNT_ID: account.account_id,
        Slot.REGION: options.region or account.region,
        Slot.NAMESPACE: account.namespace,
        Slot.TITLE: options.title,
        Slot.PERIOD: options.period,
    }
    try:
        substitutions[Slot.PERIOD_START] = now - options.start_offset
        substitutions[Slot.PERIOD_END] = now - options.end_offset
    except OverflowError as e:
        raise TemplateError(
            f"Query window out of range: start offset {options.start_offset}, end offset {options.end_offset}"
        ) from e
    validate_substitutions(substitutions)
    return substitutions


def _lookup(name: str, substitutions: dict[Slot, SlotValue]) -> SlotValue:
    try:
        slot = Slot(name)
    except ValueError:
        known = ", ".join(s.token for s in Slot)
        raise TemplateError(f"Unknown placeholder {{{{{name}}}}}; known placeholders: {known}") from None
    if slot not in substitutions:
        raise TemplateError(f"No value provided for placeholder {slot.token}")
    return substitutions[slot]


def _as_text(value: SlotValue) -> str:
    if isinstance(value, datetime):
        return format_timestamp(value)
    return str(value)


def _check_tokens(text: str) -> None:
    """Rejects stray or unbalanced braces around placeholders, e.g. "{{REGION" or "{{{REGION}}}"."""
    for m in _TOKEN_RE.finditer(text):
        if text[m.start() - 1 : m.start()] == "{" or text[m.end() : m.end() + 1] == "}":
            raise TemplateError(f"Malformed placeholder in {text!r}")
    rest = _TOKEN_RE.sub("", text)
    if "{{" in rest or "}}" in rest:
        raise TemplateError(f"Malformed placeholder in {text!r}")


def _substitute_string(text: str, substitutions: dict[Slot, SlotValue]) -> Any:
    _check_tokens(text)
    whole = _TOKEN_RE.fullmatch(text)
    if whole:
        value = _lookup(whole.group(1), substitutions)
        return format_timestamp(value) if isinstance(value, datetime) else value

    return _TOKEN_RE.sub(lambda m: _as_text(_lookup(m.group(1), substitutions)), text)


def render_template(template: Any, substitutions: dict[Slot, SlotValue]) -> Any:
    """Returns a new document with every placeholder filled. The input is left untouched."""
    if isinstance(template, dict):
        return {key: render_template(value, substitutions) for key, value in template.items()}
    if isinstance(template, list):
        return [render_template(item, substitutions) for item in template]
    if isinstance(template, str):
        return _substitute_string(template, substitutions)
    return template


def render_widget(
    template: dict,
    account: AccountDescriptor,
    options: FetchOptions,
    now: Optional[datetime] = None,
) -> str:
    """Renders the MetricWidget JSON string for one account."""
    substitutions = build_substitutions(account, options, now=now)
    widget = render_template(template, substitutions)
    body = json.dumps(widget)
    logger.debug("Templated widget for %s/%s:\n%s", account.namespace, account.region, body)
    return body

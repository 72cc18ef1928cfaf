import copy
import json
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from metric_widget_cli.core.exceptions import TemplateError
from metric_widget_cli.core.models import AccountDescriptor, FetchOptions, Slot
from metric_widget_cli.core.templating import (
    build_substitutions,
    load_template,
    render_template,
    render_widget,
)

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
ACCOUNT = AccountDescriptor("SomeDataProcessingProgram", "111111111111", "us-east-1")
OPTIONS = FetchOptions(period=3600, start_offset=timedelta(hours=4320), title="traffic")

TEMPLATE = {
    "title": "{{NAMESPACE}} {{TITLE}} ({{REGION}})",
    "region": "{{REGION}}",
    "period": "{{PERIOD}}",
    "start": "{{PERIOD_START}}",
    "end": "{{PERIOD_END}}",
    "stacked": False,
    "width": 1200,
    "metrics": [["{{NAMESPACE}}", "Retries", "AccountId", "{{ACCOUNT_ID}}", {"stat": "Sum"}]],
}


class TestBuildSubstitutions(unittest.TestCase):
    def test_values_are_typed(self):
        subs = build_substitutions(ACCOUNT, OPTIONS, now=NOW)

        self.assertEqual(subs[Slot.ACCOUNT_ID], "111111111111")
        self.assertEqual(subs[Slot.REGION], "us-east-1")
        self.assertEqual(subs[Slot.NAMESPACE], "SomeDataProcessingProgram")
        self.assertEqual(subs[Slot.PERIOD], 3600)
        self.assertEqual(subs[Slot.PERIOD_START], NOW - timedelta(hours=4320))
        self.assertEqual(subs[Slot.PERIOD_END], NOW)

    def test_region_override(self):
        options = FetchOptions(period=60, start_offset=timedelta(hours=1), region="eu-west-1")
        subs = build_substitutions(ACCOUNT, options, now=NOW)
        self.assertEqual(subs[Slot.REGION], "eu-west-1")

    def test_invalid_period_is_rejected(self):
        options = FetchOptions(period=0, start_offset=timedelta(hours=1))
        with self.assertRaises(TemplateError):
            build_substitutions(ACCOUNT, options, now=NOW)

    def test_naive_now_is_rejected(self):
        with self.assertRaises(TemplateError):
            build_substitutions(ACCOUNT, OPTIONS, now=datetime(2026, 1, 1))

    def test_offset_beyond_calendar_is_rejected(self):
        options = FetchOptions(period=60, start_offset=timedelta(hours=20000000))
        with self.assertRaises(TemplateError) as ctx:
            build_substitutions(ACCOUNT, options, now=NOW)
        self.assertIn("out of range", str(ctx.exception))

    def test_empty_title_is_rejected(self):
        options = FetchOptions(period=60, start_offset=timedelta(hours=1), title="  ")
        with self.assertRaises(TemplateError):
            build_substitutions(ACCOUNT, options, now=NOW)


class TestRenderTemplate(unittest.TestCase):
    def setUp(self):
        self.subs = build_substitutions(ACCOUNT, OPTIONS, now=NOW)

    def test_every_placeholder_is_filled(self):
        widget = render_template(TEMPLATE, self.subs)

        self.assertEqual(widget["title"], "SomeDataProcessingProgram traffic (us-east-1)")
        self.assertEqual(widget["region"], "us-east-1")
        self.assertEqual(widget["period"], 3600)
        self.assertEqual(widget["start"], "2026-04-22T12:00:00Z")
        self.assertEqual(widget["end"], "2026-10-19T12:00:00Z")
        self.assertEqual(
            widget["metrics"][0],
            ["SomeDataProcessingProgram", "Retries", "AccountId", "111111111111", {"stat": "Sum"}],
        )
        self.assertIs(widget["stacked"], False)
        self.assertEqual(widget["width"], 1200)

    def test_input_is_not_mutated(self):
        original = copy.deepcopy(TEMPLATE)
        render_template(TEMPLATE, self.subs)
        self.assertEqual(TEMPLATE, original)

    def test_document_without_placeholders_is_unchanged(self):
        doc = {"view": "timeSeries", "metrics": [["AWS/Lambda", "Errors"]], "width": 600, "legend": None}
        self.assertEqual(render_template(doc, self.subs), doc)
        self.assertEqual(render_template(doc, {}), doc)

    def test_tokens_tolerate_inner_whitespace(self):
        self.assertEqual(render_template({"r": "{{ REGION }}"}, self.subs), {"r": "us-east-1"})

    def test_unknown_placeholder_fails(self):
        with self.assertRaises(TemplateError) as ctx:
            render_template({"title": "{{STAGE}}"}, self.subs)
        self.assertIn("STAGE", str(ctx.exception))

    def test_malformed_placeholders_fail(self):
        for bad in ["{{REGION", "REGION}}", "{{{REGION}}}", "{{REGION}}}", "in {{ {{REGION}}"]:
            with self.subTest(value=bad):
                with self.assertRaises(TemplateError):
                    render_template({"title": bad}, self.subs)

    def test_single_braces_are_left_alone(self):
        self.assertEqual(render_template({"label": "{stat} in {{REGION}}"}, self.subs), {"label": "{stat} in us-east-1"})

    def test_placeholder_without_value_fails(self):
        subs = {Slot.REGION: "us-east-1"}
        with self.assertRaises(TemplateError) as ctx:
            render_template({"title": "{{NAMESPACE}} in {{REGION}}"}, subs)
        self.assertIn("{{NAMESPACE}}", str(ctx.exception))


class TestRenderWidget(unittest.TestCase):
    def test_returns_json_string(self):
        body = render_widget(TEMPLATE, ACCOUNT, OPTIONS, now=NOW)
        widget = json.loads(body)
        self.assertEqual(widget["period"], 3600)
        self.assertEqual(widget["region"], "us-east-1")


class TestLoadTemplate(unittest.TestCase):
    def test_loads_json_object(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "traffic.json"
            path.write_text(json.dumps(TEMPLATE), encoding="utf-8")
            self.assertEqual(load_template(path), TEMPLATE)

    def test_malformed_json_fails(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "broken.json"
            path.write_text('{"period": {{PERIOD}}}', encoding="utf-8")
            with self.assertRaises(TemplateError):
                load_template(path)

    def test_non_object_fails(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "list.json"
            path.write_text("[1, 2]", encoding="utf-8")
            with self.assertRaises(TemplateError):
                load_template(path)

    def test_missing_file_fails(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(TemplateError):
                load_template(Path(tmp) / "nope.json")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import datetime as dt
import unittest

from plantable import UsageError, load_project, render_report, report_to_html
from plantable.config import AppInfo
from plantable.model import ReportContext
from plantable.render.html_tree import HtmlElement, HtmlText, named_text

NOW = dt.datetime(2024, 1, 15, 12, 0, tzinfo=dt.timezone.utc)


def _doc() -> dict:
    return {
        "project": {"id": "demo", "name": "Demo <1>", "start": "2024-01-01", "end": "2024-02-01", "copyright": "ACME"},
        "tasks": [
            {
                "id": "P",
                "name": "Project",
                "children": [
                    {"id": "P.1", "name": "Design & Review", "start": "2024-01-02", "end": "2024-01-05"},
                    {"id": "P.2", "name": "Launch", "start": "2024-01-10", "end": "2024-01-10"},
                ],
            }
        ],
        "resources": [{"id": "dev", "name": "Developer"}],
        "bookings": [{"resource": "dev", "task": "P.1", "start": "2024-01-02T09:00", "end": "2024-01-02T17:00"}],
        "reports": [
            {
                "id": "plain",
                "columns": ["name", {"id": "name", "title": "Link", "cell_url": "https://example.org/?t=${id}&x=1"}],
                "headline": "Weekly <status>",
                "caption": "All tasks",
                "prolog": "Before",
                "epilog": "After",
                "start": "2024-01-01",
                "end": "2024-01-15",
            },
            {
                "id": "gantt",
                "columns": ["name", "daily", {"id": "chart", "width": 200}],
                "start": "2024-01-01",
                "end": "2024-01-15",
                "hide_resource": "false",
            },
            {"id": "people", "kind": "resourcereport", "columns": ["name", "effort", "weekly"], "hide_task": "false"},
        ],
    }


def _html(report_id: str) -> str:
    return report_to_html(load_project(_doc()), report_id, now=NOW)


class TestHtmlTreeContract(unittest.TestCase):
    def test_text_and_attributes_are_escaped(self) -> None:
        el = HtmlElement("td", {"title": 'a "b"', "skip": None}, [HtmlText("x < y & z")])
        self.assertEqual(el.to_html(), '<td title="a &quot;b&quot;">x &lt; y &amp; z</td>')

    def test_find_all_and_text_content(self) -> None:
        root = HtmlElement("div")
        root.add("p").text("one")
        root.append(named_text("two", "p"))
        self.assertEqual([p.text_content() for p in root.find_all("p")], ["one", "two"])
        self.assertEqual(root.text_content(), "onetwo")


class TestHtmlReportContract(unittest.TestCase):
    def test_frame_parts_are_present_and_escaped(self) -> None:
        html = _html("plain")
        self.assertIn("<title>Weekly &lt;status&gt;</title>", html)
        self.assertIn("Design &amp; Review", html)
        self.assertIn('href="https://example.org/?t=P.1&amp;x=1"', html)
        self.assertIn('<div class="prolog">Before</div>', html)
        self.assertIn('<div class="epilog">After</div>', html)
        self.assertIn(">All tasks<", html)
        self.assertIn("ACME - Project: Demo &lt;1&gt; Version: 1.0 - Created on 2024-01-15 12:00:00 with ", html)
        self.assertLess(html.index("Before"), html.index("Weekly &lt;status&gt;</p>"))

    def test_footer_names_the_generator(self) -> None:
        from plantable import generate_report
        from plantable.render.html import report_to_html as frame

        project = load_project(_doc())
        builder = generate_report(project, "plain", app_info=AppInfo(package_name="acme-reports", version="9.9", contact="https://acme.example"))
        footer = frame(builder, now=NOW)[1].find_all("td")[-1]
        self.assertIn("acme-reports", footer.text_content())
        self.assertTrue(footer.text_content().endswith(" v9.9"))

    def test_calendar_and_chart_render(self) -> None:
        html = _html("gantt")
        self.assertIn("Jan 2024", html)
        self.assertIn('class="chartbar"', html)
        self.assertIn('class="chartmilestone"', html)
        self.assertIn("max-width:200px", html)
        self.assertIn('class="caltask1"', html)
        self.assertIn("Developer", html)

    def test_resource_report_renders_legend(self) -> None:
        html = _html("people")
        self.assertIn("Resource is fully loaded", html)
        self.assertIn(">Developer<", html)


class TestRenderReportContract(unittest.TestCase):
    def test_missing_id_is_a_usage_error(self) -> None:
        project = load_project(_doc())
        with self.assertRaises(UsageError) as ctx:
            render_report(project, {})
        self.assertIn("Argument 'id' missing", str(ctx.exception))

    def test_unknown_report_is_a_usage_error(self) -> None:
        project = load_project(_doc())
        with self.assertRaises(UsageError) as ctx:
            render_report(project, {"id": "nope"})
        self.assertEqual(str(ctx.exception), "Unknown report nope")

    def test_report_context_is_restored(self) -> None:
        project = load_project(_doc())
        outer = ReportContext(project, None, {"id": "outer"})
        project.report_context = outer

        elements = render_report(project, {"id": "plain"}, now=NOW)
        self.assertIs(project.report_context, outer)
        self.assertTrue(any("Design &amp; Review" in e.to_html() for e in elements))

        with self.assertRaises(UsageError):
            render_report(project, {"id": "nope"})
        self.assertIs(project.report_context, outer)


if __name__ == "__main__":
    unittest.main(verbosity=2)

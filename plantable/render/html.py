# plantable/render/html.py
"""HTML rendering of finished report tables."""
from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional

from ..table import ChartContext, ColumnTable, ReportTable, ReportTableCell, ReportTableLegend, ReportTableLine
from .html_tree import HtmlElement, HtmlText, named_text

REPORT_CSS = """
.tabback { background-color:#9a9a9a; }
.tabfront { background-color:#d4dde6; }
.tabhead { background-color:#7a7a7a; color:#ffffff; font-size:110%; font-weight:bold; text-align:center; }
.tabhead_offduty { background-color:#dde375; color:#000000; }
.tabfooter { background-color:#9a9a9a; color:#2f2f2f; }
.taskcell1 { background-color:#ebf2ff; }
.taskcell2 { background-color:#d9dfeb; }
.resourcecell1 { background-color:#fff2cf; }
.resourcecell2 { background-color:#ffe8c0; }
.caltask1, .caltask2 { background-color:#2f7fe8; color:#ffffff; }
.calconttask1, .calconttask2 { background-color:#1a3f74; color:#ffffff; }
.offduty, .offduty1, .offduty2 { background-color:#f3f990; }
.busy1, .busy2 { background-color:#ff3b3b; }
.loaded1, .loaded2 { background-color:#ff9b9b; }
.free1, .free2 { background-color:#a4ff8d; }
.error { background-color:#ffffff; }
.caption { padding:5px 13px; background-color:#ebf2ff; }
.chartbar { position:absolute; background-color:#2f7fe8; }
.chartbar_container { position:absolute; background-color:#1a3f74; }
.chartmilestone { position:absolute; background-color:#000000; }
""".strip()


def _style(*parts: Optional[str]) -> Optional[str]:
    s = "; ".join(p for p in parts if p)
    return s or None


def _cell_td(cell: ReportTableCell, *, line_height: Optional[int] = None) -> HtmlElement:
    style = _style(
        f"text-align:{cell.alignment}" if cell.alignment else None,
        f"padding-left:{3 + cell.indent * 8}px" if cell.indent else None,
        "font-weight:bold" if cell.bold else None,
        f"font-size:{cell.font_size}px" if cell.font_size else None,
        f"color:#{cell.font_color:06X}" if cell.font_color is not None else None,
        f"height:{line_height}px" if line_height else None,
        f"width:{cell.width * cell.columns}px" if cell.width else None,
    )
    td = HtmlElement(
        "td",
        {
            "class": cell.category,
            "colspan": cell.columns if cell.columns > 1 else None,
            "rowspan": cell.rows if cell.rows > 1 else None,
            "style": style,
        },
    )
    text = cell.text or ""
    if cell.url:
        td.append(named_text(text, "a", {"href": cell.url}))
    elif text:
        td.append(HtmlText(text))
    return td


def _calendar_line(line: ReportTableLine) -> HtmlElement:
    table = HtmlElement("table", {"cellspacing": "1", "cellpadding": "0", "border": "0", "style": "width:100%"})
    tr = table.add("tr")
    for cell in line.cells:
        if cell.hidden:
            continue
        td = _cell_td(cell, line_height=line.height - 2)
        td.attrs["style"] = _style(td.attrs.get("style"), f"min-width:{20 * cell.columns}px") or ""
        tr.append(td)
    return table


def _calendar_header(ctable: ColumnTable) -> HtmlElement:
    table = HtmlElement("table", {"cellspacing": "1", "cellpadding": "0", "border": "0"})
    upper = table.add("tr")
    lower = table.add("tr")
    for column in ctable.columns:
        if not column.cell1.hidden:
            upper.append(
                named_text(column.cell1.text or "", "td", {
                    "class": "tabhead",
                    "colspan": column.cell1.columns if column.cell1.columns > 1 else None,
                })
            )
        td = named_text(column.cell2.text or "", "td", {
            "class": column.cell2.category or "tabhead",
            "style": f"min-width:{column.cell2.width or 20}px",
        })
        if column.cell1.data:
            td.attrs["title"] = column.cell1.data
        lower.append(td)
    return table


def _scrollable(content: HtmlElement, max_width: Optional[int]) -> HtmlElement:
    style = "overflow-x:auto" + (f"; max-width:{max_width}px" if max_width else "")
    return HtmlElement("div", {"style": style}, [content])


def _chart_header(chart: ChartContext) -> HtmlElement:
    div = HtmlElement("div", {
        "style": f"position:relative; width:{chart.chart_width}px; height:{chart.header_height}px",
    })
    div.append(named_text(f"{chart.start:%Y-%m-%d} - {chart.end:%Y-%m-%d}", "span"))
    return div


def _chart_body(chart: ChartContext, table: ReportTable) -> HtmlElement:
    height = len(table.lines) * (table.line_height + 1)
    div = HtmlElement("div", {"style": f"position:relative; width:{chart.chart_width}px; height:{height}px"})
    if chart.now is not None and chart.start <= chart.now <= chart.end:
        x = chart.x_of(chart.now)
        div.add("div", {"class": "chartnow", "style": f"position:absolute; left:{x}px; top:0px; width:1px; height:{height}px; background-color:#ff0000"})
    for a in chart.annotations:
        iv = a.property.effective_interval(a.scenario_idx)
        x, w = chart.bar(iv)
        milestone = iv.start == iv.end
        if milestone:
            cls, w = "chartmilestone", 7
            x = max(0, x - 3)
        elif a.property.is_container():
            cls = "chartbar_container"
        else:
            cls = "chartbar"
        top = a.y + a.height // 4
        div.add("div", {
            "class": cls,
            "title": a.property.name,
            "style": f"left:{x}px; top:{top}px; width:{w}px; height:{max(1, a.height // 2)}px",
        })
    return div


def table_to_html(table: ReportTable) -> HtmlElement:
    """The data table: two header rows, then one row per line."""
    out = HtmlElement("table", {"summary": "Report Table", "cellspacing": "1", "border": "0", "cellpadding": "2", "class": "tabback"})
    thead = out.add("thead")
    row1 = thead.add("tr", {"class": "tabhead", "style": f"height:{table.header_line_height}px"})
    row2 = thead.add("tr", {"class": "tabhead", "style": f"height:{table.header_line_height}px"})
    for column in table.columns:
        special = column.cell1.special
        if isinstance(special, ColumnTable):
            row1.add("td", {"rowspan": "2", "style": "padding:0"}).append(_scrollable(_calendar_header(special), special.max_width))
            continue
        if isinstance(special, ChartContext):
            row1.add("td", {"rowspan": "2", "style": "padding:0"}).append(_scrollable(_chart_header(special), special.width))
            continue
        if not column.cell1.hidden:
            row1.append(named_text(column.cell1.text or "", "td", {
                "rowspan": column.cell1.rows if column.cell1.rows > 1 else None,
                "colspan": column.cell1.columns if column.cell1.columns > 1 else None,
            }))
        if not column.cell2.hidden:
            row2.append(named_text(column.cell2.text or "", "td"))

    tbody = out.add("tbody")
    for i, line in enumerate(table.lines):
        tr = tbody.add("tr", {"style": f"height:{line.height}px" if table.equi_lines else None})
        for column, cell in zip(table.columns, line.cells):
            chart = column.cell1.special
            if isinstance(chart, ChartContext):
                if i == 0:
                    td = tr.add("td", {"rowspan": len(table.lines), "style": "padding:0; vertical-align:top"})
                    td.append(_scrollable(_chart_body(chart, table), chart.width))
                continue
            if cell.hidden:
                continue
            if isinstance(cell.special, ReportTableLine):
                td = tr.add("td", {"style": "padding:0"})
                ctable = column.cell1.special
                td.append(_scrollable(_calendar_line(cell.special), getattr(ctable, "max_width", None)))
                continue
            tr.append(_cell_td(cell))
    return out


def legend_to_html(legend: ReportTableLegend) -> HtmlElement:
    table = HtmlElement("table", {"summary": "Legend", "cellspacing": "1", "cellpadding": "2", "border": "0", "style": "width:100%"})
    if not legend:
        return table
    tr = table.add("tr")
    for name, category in legend.items:
        tr.append(named_text(name, "td", {"style": "text-align:right"}))
        tr.add("td", {"class": category, "style": "width:20px; border:1px solid #2f2f2f"})
    return table


def report_to_html(builder: Any, *, now: Optional[dt.datetime] = None) -> List[HtmlElement]:
    """The report frame around a generated table, as a list of elements."""
    table = builder.begin_render()
    report = builder.report
    project = builder.project
    info = builder.app_info
    html: List[HtmlElement] = []

    if report.prolog:
        html.append(named_text(report.prolog, "div", {"class": "prolog"}))

    frame = HtmlElement("table", {
        "summary": "Report Table", "cellspacing": "2", "border": "0",
        "cellpadding": "0", "align": "center", "class": "tabback",
    })
    html.append(frame)

    if report.headline:
        tr = frame.add("thead").add("tr")
        inner = tr.add("td").add("table", {
            "summary": "headline", "cellspacing": "1", "border": "0",
            "cellpadding": "5", "align": "center", "width": "100%",
        })
        td = inner.add("tr").add("td", {"align": "center", "style": "font-size:16px; font-weight:bold", "class": "tabfront"})
        td.append(named_text(report.headline, "p"))

    tbody = frame.add("tbody")
    tbody.add("tr").add("td").append(table_to_html(table))

    if report.caption:
        div = tbody.add("tr").add("td", {"class": "tabback"}).add("div", {"class": "caption", "style": "margin:1px"})
        div.text(report.caption)

    tbody.add("tr", {"style": "font-size:10px;"}).add(
        "td", {"style": "padding-left:1px; padding-right:1px;"}
    ).append(legend_to_html(builder.legend))

    footer = tbody.add("tr", {"style": "font-size:9px"}).add("td", {"class": "tabfooter"})
    copyright = project.copyright or info.copyright
    if copyright:
        footer.text(f"{copyright} - ")
    created = (now or dt.datetime.now(project.tz)).strftime("%Y-%m-%d %H:%M:%S")
    footer.text(f"Project: {project.name} Version: {project.version} - Created on {created} with ")
    footer.append(named_text(info.package_name, "a", {"href": info.contact}))
    footer.text(f" v{info.version}")

    if report.epilog:
        html.append(named_text(report.epilog, "div", {"class": "epilog"}))
    return html


def html_document(elements: List[HtmlElement], title: str = "Report") -> str:
    body = "\n".join(e.to_html() for e in elements)
    return (
        "<!doctype html>\n"
        '<html lang="en">\n<head>\n<meta charset="utf-8" />\n'
        f"<title>{HtmlText(title).to_html()}</title>\n"
        f"<style>\n{REPORT_CSS}\n</style>\n"
        f"</head>\n<body>\n{body}\n</body>\n</html>\n"
    )


__all__ = ["REPORT_CSS", "html_document", "legend_to_html", "report_to_html", "table_to_html"]

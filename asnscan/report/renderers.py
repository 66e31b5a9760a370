# asnscan/report/renderers.py
import csv
import json
import logging

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

FORMATS = ("text", "json", "csv")

logger = logging.getLogger("asnscan.report")


def to_json(info):
    return json.dumps(info.to_dict(), indent=2)


def write_json(info, path):
    with open(path, 'w', encoding='utf-8') as f:
        f.write(to_json(info))
    logger.info(f"JSON written to {path}")


def csv_rows(info, show_prefixes):
    """Header row followed by data rows for the given result."""
    if show_prefixes:
        rows = [["ASN", "Description", "Prefix"]]
        rows.extend([info.asn, info.description, p] for p in info.prefixes)
        return rows
    if info.resolved_ip:
        return [
            ["Query", "IP", "ASN", "Description"],
            [info.query, info.resolved_ip, info.asn, info.description],
        ]
    return [
        ["Query", "ASN", "Description"],
        [info.query, info.asn, info.description],
    ]


def _prefix_lines(prefixes):
    # two prefixes per row
    for i in range(0, len(prefixes), 2):
        pair = prefixes[i:i + 2]
        if len(pair) == 2:
            yield f"    {pair[0]:<35}{pair[1]}"
        else:
            yield f"    {pair[0]}"


def render_text(info, show_prefixes, console):
    if console.is_terminal:
        console.print(f"[cyan]Query:[/cyan] {escape(info.query)}", highlight=False)
        if info.resolved_ip:
            console.print(f"  [yellow]Resolved IP:[/yellow] {info.resolved_ip}", highlight=False)
        console.print(f"  [green]ASN:[/green] {info.asn}", highlight=False)
        console.print(f"  [cyan]Description:[/cyan] {escape(info.description)}", highlight=False)
        if show_prefixes and info.prefixes:
            console.print("  [yellow]Prefixes:[/yellow]")
            for line in _prefix_lines(info.prefixes):
                console.print(line, highlight=False, soft_wrap=True)
        return

    lines = [f"Query: {info.query}"]
    if info.resolved_ip:
        lines.append(f"  Resolved IP: {info.resolved_ip}")
    lines.append(f"  ASN: {info.asn}")
    lines.append(f"  Description: {info.description}")
    if show_prefixes and info.prefixes:
        lines.append("  Prefixes:")
        lines.extend(_prefix_lines(info.prefixes))
    console.file.write("\n".join(lines) + "\n")


def render_json(info, output, console):
    if output:
        write_json(info, output)
        return
    if console.is_terminal:
        console.print(Syntax(to_json(info), "json", background_color="default"))
        return
    console.file.write(to_json(info) + "\n")


def render_csv(info, show_prefixes, output, console):
    rows = csv_rows(info, show_prefixes)
    if output:
        with open(output, 'w', newline='', encoding='utf-8') as f:
            csv.writer(f).writerows(rows)
        logger.info(f"CSV written to {output}")
        return

    if console.is_terminal:
        header, *body = rows
        if show_prefixes:
            styles = ["yellow", "green", "cyan"]
        elif len(header) == 4:
            styles = ["cyan", "yellow", "yellow", "green"]
        else:
            styles = ["cyan", "yellow", "green"]
        console.print(",".join(f"[{s}]{h}[/{s}]" for s, h in zip(styles, header)), highlight=False)
        for row in body:
            console.print(",".join(f"[{s}]{escape(v)}[/{s}]" for s, v in zip(styles, row)), highlight=False, soft_wrap=True)
        return

    csv.writer(console.file, lineterminator="\n").writerows(rows)


def render(info, fmt="text", show_prefixes=False, output=None, console=None):
    """
    Prints (or writes) a ResolvedInfo. Unknown formats fall back to text;
    text with an output file also saves the JSON document there.
    """
    console = console or Console()
    fmt = (fmt or "text").lower()

    if fmt == "json":
        render_json(info, output, console)
    elif fmt == "csv":
        render_csv(info, show_prefixes, output, console)
    else:
        if fmt != "text":
            logger.warning(f"Unknown format '{fmt}', using text")
        render_text(info, show_prefixes, console)
        if output:
            write_json(info, output)

"""
Output module - Separates rendering from analysis.

Provides multiple output formats:
- render_text: Plain terminal report with the execution graph
- render_json: Model dump for APIs and log aggregation
- render_markdown: GitHub/Slack-friendly format

Usage:
    from profilesense.output import render_text, render_json, render_markdown

    analysis = analyze_profile(parse_profile(text))

    print(render_text(analysis))
"""

from profilesense.output.renderers import (
    OutputFormat,
    format_duration_ns,
    render,
    render_json,
    render_markdown,
    render_text,
    render_tree,
)

__all__ = [
    "OutputFormat",
    "format_duration_ns",
    "render",
    "render_text",
    "render_json",
    "render_markdown",
    "render_tree",
]

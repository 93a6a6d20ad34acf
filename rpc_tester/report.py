"""Human-readable and JSON rendering of a test report."""

import difflib
import json
from pathlib import Path

from .differential import ErrorA, ErrorB, Mismatch, ProbeOutcome
from .equality import Report

HEADER = "--- RPC Method Test Results ---"
FOOTER = "-" * 32


def line_diff(canonical_a: str, canonical_b: str) -> list[str]:
    """Unified line diff between the canonical texts of both sides."""
    return list(difflib.unified_diff(
        canonical_a.splitlines(),
        canonical_b.splitlines(),
        fromfile="A",
        tofile="B",
        lineterm="",
    ))


def render_failure(name: str, outcome: ProbeOutcome) -> list[str]:
    lines = [f"    {name}: ❌ Failure"]
    if isinstance(outcome, Mismatch):
        lines.extend(line_diff(outcome.canonical_a, outcome.canonical_b))
    elif isinstance(outcome, ErrorA):
        lines.append(f"## A node error: {outcome.message}")
    elif isinstance(outcome, ErrorB):
        lines.append(f"## B node error: {outcome.message}")
    return lines


def render(report: Report) -> str:
    """Render every unit: a pass marker, or each failing probe with its diff."""
    lines = ["", HEADER]
    for unit in report.units:
        failures = unit.failures
        if not failures:
            lines.append(f"{unit.title} ✅")
            continue
        lines.append("")
        lines.append(f"{unit.title} ❌")
        for name, outcome in failures:
            lines.extend(render_failure(name, outcome))
    if report.interrupted:
        lines.append("(interrupted before the whole range was tested)")
    lines.append(FOOTER)

    failed = sum(1 for unit in report.units if not unit.passed)
    lines.append(f"Units with failures: {failed}/{len(report.units)}")
    return "\n".join(lines) + "\n"


def outcome_to_dict(name: str, outcome: ProbeOutcome) -> dict:
    data = {"probe": name, "kind": outcome.kind}
    if isinstance(outcome, Mismatch):
        data["value_a"] = outcome.value_a
        data["value_b"] = outcome.value_b
    elif isinstance(outcome, (ErrorA, ErrorB)):
        data["message"] = outcome.message
    return data


def report_to_dict(report: Report) -> dict:
    return {
        "passed": report.passed,
        "interrupted": report.interrupted,
        "units": [
            {
                "title": unit.title,
                "passed": unit.passed,
                "outcomes": [outcome_to_dict(name, outcome) for name, outcome in unit.outcomes],
            }
            for unit in report.units
        ],
    }


def save_report(output_dir: Path, block_range, report: Report) -> Path:
    """Save the report to ``output_dir/<start>-<end>/report.json``."""
    run_dir = output_dir / f"{block_range.start}-{block_range.end}"
    run_dir.mkdir(parents=True, exist_ok=True)
    filepath = run_dir / "report.json"
    with open(filepath, "w") as f:
        json.dump(report_to_dict(report), f, indent=2)
    return filepath


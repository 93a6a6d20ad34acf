#!/usr/bin/env python3
"""Analyze saved RPC equality reports and generate a failure summary."""

import argparse
import json
from collections import defaultdict
from pathlib import Path


def format_value(val, max_len=100):
    """Format a value for display, truncating if necessary."""
    if val is None:
        return "None"
    if isinstance(val, dict):
        s = json.dumps(val, sort_keys=True)
    else:
        s = str(val)

    if len(s) > max_len:
        return s[:max_len] + "..."
    return s


def describe_difference(value_a, value_b) -> str:
    """Describe what's different between the A and B values."""
    # Handle lists
    if isinstance(value_a, list) and isinstance(value_b, list):
        if len(value_a) != len(value_b):
            return f"list length differs ({len(value_a)} vs {len(value_b)})"

        # Find first differing index
        for i, (a, b) in enumerate(zip(value_a, value_b)):
            if a != b:
                return f"item[{i}] differs: {describe_difference(a, b)}"

        return "values differ (unknown reason)"

    # Handle dicts
    if isinstance(value_a, dict) and isinstance(value_b, dict):
        keys_a = set(value_a.keys())
        keys_b = set(value_b.keys())

        if keys_a != keys_b:
            parts = []
            if keys_b - keys_a:
                parts.append(f"missing in A: {sorted(keys_b - keys_a)}")
            if keys_a - keys_b:
                parts.append(f"missing in B: {sorted(keys_a - keys_b)}")
            return "; ".join(parts)

        # Same keys, find differing value
        for key in sorted(keys_a):
            if value_a[key] != value_b[key]:
                return f"key `{key}` differs"

        return "values differ (unknown reason)"

    # Handle strings (common case: hex formatting)
    if isinstance(value_a, str) and isinstance(value_b, str):
        if value_a.lower() == value_b.lower():
            return "case differs (e.g., hex casing)"
        if value_a.removeprefix("0x") == value_b.removeprefix("0x"):
            return "0x prefix differs"
        if len(value_a) != len(value_b):
            return f"string length differs ({len(value_a)} vs {len(value_b)})"
        return "string content differs"

    # Different types
    if type(value_a) != type(value_b):
        return f"type differs ({type(value_a).__name__} vs {type(value_b).__name__})"

    return "values differ"


def load_reports(reports_dir: Path) -> list[dict]:
    """Load all report.json files."""
    reports = []
    for report_file in sorted(reports_dir.rglob("report.json")):
        try:
            with open(report_file) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"Error loading {report_file}: {e}")
            continue
        data["_source_file"] = str(report_file)
        reports.append(data)
    return reports


def analyze_failures(reports: list[dict]) -> dict:
    """Aggregate failing outcomes by probe and by failure kind."""
    analysis = {
        "summary": {
            "total_reports": len(reports),
            "failed_reports": 0,
            "interrupted_reports": 0,
            "total_units": 0,
            "failed_units": 0,
            "failure_kinds": defaultdict(int),
        },
        # probe -> kind -> count
        "by_probe": defaultdict(lambda: defaultdict(int)),
        # probe -> [{unit, description, value_a, value_b}]
        "mismatch_examples": defaultdict(list),
        # probe -> side -> {message: count}
        "errors": defaultdict(lambda: defaultdict(lambda: defaultdict(int))),
    }

    for report in reports:
        summary = analysis["summary"]
        if not report.get("passed", False):
            summary["failed_reports"] += 1
        if report.get("interrupted"):
            summary["interrupted_reports"] += 1

        for unit in report.get("units", []):
            summary["total_units"] += 1
            if not unit.get("passed", True):
                summary["failed_units"] += 1

            for outcome in unit.get("outcomes", []):
                kind = outcome.get("kind")
                if kind == "match":
                    continue
                probe = outcome.get("probe", "unknown")
                summary["failure_kinds"][kind] += 1
                analysis["by_probe"][probe][kind] += 1

                if kind == "mismatch":
                    analysis["mismatch_examples"][probe].append({
                        "unit": unit.get("title"),
                        "description": describe_difference(outcome.get("value_a"), outcome.get("value_b")),
                        "value_a": outcome.get("value_a"),
                        "value_b": outcome.get("value_b"),
                    })
                else:
                    side = "A" if kind == "error_a" else "B"
                    analysis["errors"][probe][side][outcome.get("message", "")] += 1

    return analysis


def generate_summary(analysis: dict) -> str:
    """Generate a markdown summary of all failures."""
    summary = analysis["summary"]
    lines = ["# RPC Equality Failure Summary\n"]
    lines.append("\n## Overview\n")
    lines.append(f"- **Reports**: {summary['total_reports']}\n")
    lines.append(f"- **Reports with failures**: {summary['failed_reports']}\n")
    if summary["interrupted_reports"]:
        lines.append(f"- **Interrupted runs**: {summary['interrupted_reports']}\n")
    lines.append(f"- **Test units**: {summary['total_units']:,} ({summary['failed_units']:,} failed)\n")

    if not analysis["by_probe"]:
        lines.append("\nNo failures found.\n")
        return "".join(lines)

    kind_descriptions = {
        "mismatch": "Both endpoints answered with different values",
        "error_a": "Endpoint A returned an error",
        "error_b": "Endpoint B returned an error",
    }
    lines.append("\n## Failure Kinds\n\n")
    lines.append("| Kind | Count | Description |\n|------|-------|-------------|\n")
    for kind, count in sorted(summary["failure_kinds"].items(), key=lambda x: -x[1]):
        lines.append(f"| {kind} | {count:,} | {kind_descriptions.get(kind, '—')} |\n")

    lines.append("\n## Failures by Probe\n\n")
    lines.append("| Probe | Mismatches | A errors | B errors |\n|-------|------------|----------|----------|\n")
    for probe, kinds in sorted(analysis["by_probe"].items(), key=lambda x: -sum(x[1].values())):
        lines.append(f"| {probe} | {kinds.get('mismatch', 0):,} | {kinds.get('error_a', 0):,} "
                     f"| {kinds.get('error_b', 0):,} |\n")

    if analysis["mismatch_examples"]:
        lines.append("\n## Mismatch Examples\n")
        for probe, examples in sorted(analysis["mismatch_examples"].items()):
            lines.append(f"\n### `{probe}` ({len(examples):,} occurrences)\n")
            # Show a few examples
            for i, ex in enumerate(examples[:3], 1):
                lines.append(f"\n**Example {i}** ({ex['unit']}): {ex['description']}\n")
                lines.append(f"- **A**: `{format_value(ex['value_a'])}`\n")
                lines.append(f"- **B**: `{format_value(ex['value_b'])}`\n")

    if analysis["errors"]:
        lines.append("\n## Errors\n")
        for probe, sides in sorted(analysis["errors"].items()):
            lines.append(f"\n### `{probe}`\n\n")
            lines.append("| Side | Count | Message |\n|------|-------|---------|\n")
            for side, messages in sorted(sides.items()):
                for message, count in sorted(messages.items(), key=lambda x: -x[1])[:5]:
                    lines.append(f"| {side} | {count:,} | `{format_value(message)}` |\n")

    return "".join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Analyze saved RPC equality reports and summarize failures")
    parser.add_argument("--input-dir", type=str, default="./reports",
                        help="Input directory containing report.json files (default: ./reports)")
    parser.add_argument("--output-dir", type=str, default="./summary",
                        help="Output directory for the summary (default: ./summary)")
    args = parser.parse_args(argv)

    reports_dir = Path(args.input_dir)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("Loading reports...")
    reports = load_reports(reports_dir)
    print(f"Loaded {len(reports)} report files")

    analysis = analyze_failures(reports)

    # Print summary
    summary = analysis["summary"]
    print("\n=== SUMMARY ===")
    print(f"Reports with failures: {summary['failed_reports']}/{summary['total_reports']}")
    print(f"Failed units: {summary['failed_units']}/{summary['total_units']}")
    if summary["failure_kinds"]:
        print("\nFailure kinds:")
        for kind, count in sorted(summary["failure_kinds"].items(), key=lambda x: -x[1]):
            print(f"  {kind}: {count:,}")

    summary_path = output_dir / "summary.md"
    with open(summary_path, "w") as f:
        f.write(generate_summary(analysis))
    print(f"  Written: {summary_path}")


if __name__ == "__main__":
    main()

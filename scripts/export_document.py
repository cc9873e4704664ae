#!/usr/bin/env python3
"""Export an IEA Task 43 document through the wizard API."""

import argparse
import json
import sys
from pathlib import Path
from urllib.parse import urljoin

import requests


def print_blocked(summary):
    """Print the findings that blocked an export."""
    print("Export blocked by validation errors:", file=sys.stderr)
    for issue in summary.get("required_fields", {}).get("errors", []):
        print(f"  [required] {issue['path']}: {issue['message']}", file=sys.stderr)
    for issue in summary.get("compliance", {}).get("errors", []):
        if issue.get("severity") == "error":
            print(f"  [schema] {issue['path']}: {issue['message']}", file=sys.stderr)


def export_remote(doc, base_url):
    """
    Post a document to the API export endpoint.

    Returns:
        tuple: (exported text or None, blocking summary or None)
    """
    export_url = urljoin(base_url.rstrip("/") + "/", "export")
    response = requests.post(export_url, json=doc, headers={"Accept": "application/json"})
    if response.status_code == 422:
        error = response.json().get("error", {})
        return None, error.get("details") or {}
    response.raise_for_status()
    return response.text, None


def export_offline(doc):
    """Run the export pipeline in-process."""
    from iea43wizard.export import ExportBlockedError, export_document

    try:
        return export_document(doc), None
    except ExportBlockedError as e:
        return None, e.check.summary()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Export an IEA Task 43 document as schema-compliant JSON")
    parser.add_argument("--doc", required=True, help="Input document (JSON file)")
    parser.add_argument("--out", required=True, help="Output file path")
    parser.add_argument("--base-url", default="http://localhost:8000",
                        help="Base URL for the wizard API (default: http://localhost:8000)")
    parser.add_argument("--offline", action="store_true",
                        help="Validate and export in-process instead of calling the API")

    args = parser.parse_args()

    try:
        with open(args.doc, "r", encoding="utf-8") as f:
            doc = json.load(f)

        if args.offline:
            text, blocked = export_offline(doc)
        else:
            text, blocked = export_remote(doc, args.base_url)

        if blocked is not None:
            print_blocked(blocked)
            sys.exit(2)

        output_path = Path(args.out)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")

        print(f"Export saved to: {output_path}")
        print(f"Size: {len(text.encode('utf-8'))} bytes")

    except requests.exceptions.RequestException as e:
        print(f"Error making API request: {e}", file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

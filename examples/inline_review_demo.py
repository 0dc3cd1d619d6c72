#!/usr/bin/env python3
"""
Inline Review Demo

Runs the placement engine offline: indexes a diff, extracts the issue table
from a review report, and prints the inline comments that would be posted
and the fallback table.

Usage:
    python examples/inline_review_demo.py [diff_file report_file] [github|gitlab]

Example:
    git diff > change.diff
    python examples/inline_review_demo.py change.diff review.md gitlab
"""

import sys
import os
import logging

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pr_inline_reviewer.formatting import build_summary_comment, build_unmatched_table
from pr_inline_reviewer.review import addressing_for
from pr_inline_reviewer.review.pipeline import run_inline_review


SAMPLE_DIFF = """diff --git a/server.js b/server.js
--- a/server.js
+++ b/server.js
@@ -1,4 +1,5 @@
 const express = require('express');
 const app = express();
-app.listen(8981);
+app.listen(8982);
+console.log('started');
 module.exports = app;
"""

SAMPLE_REPORT = """## Score
80/100

## Issues
| File | Old line | New line | Side | Code | Severity | Category | Problem | Suggestion |
|---|---|---|---|---|---|---|---|---|
| `server.js` | - | 3 | new | `app.listen(8982);` | major | config | Hard-coded port | change `8982` to `process.env.PORT` |
| `server.js` | - | 2 | new | `const app = express();` | info | style | Context remark | - |
| `server.js` | - | 4 | new | `console.log(...)` | minor | logging | Truncated quote | - |

## Summary
Make the port configurable.
"""


def setup_logging():
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def read_file(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def main():
    """Main demo function."""
    setup_logging()

    args = sys.argv[1:]
    provider = 'github'
    if args and args[-1] in ('github', 'gitlab'):
        provider = args.pop()

    if len(args) == 2:
        diff_text, report = read_file(args[0]), read_file(args[1])
    elif not args:
        diff_text, report = SAMPLE_DIFF, SAMPLE_REPORT
    else:
        print("Usage: python inline_review_demo.py [diff_file report_file] [github|gitlab]")
        sys.exit(1)

    print(f"🔍 Placing review issues for provider: {provider}")
    print("=" * 60)

    def post(operation):
        address = operation.address
        if address.position:
            target = f"position {address.position}"
        elif address.new_line:
            target = f"new line {address.new_line}"
        else:
            target = f"old line {address.old_line}"
        print(f"\n💬 {operation.path} @ {target}")
        print(operation.body)

    result = run_inline_review(diff_text, report, addressing_for(provider), [], post)

    print("\n" + "=" * 60)
    print(f"✅ Posted: {len(result.posted)}")
    print(f"🔁 Duplicates: {len(result.duplicates)}")
    print(f"📋 Fallback: {len(result.fallback)}")

    summary = build_summary_comment(report)
    table = build_unmatched_table(result.fallback)
    print("\n📝 Summary comment:\n")
    print(f"{summary}\n\n{table}".strip())


if __name__ == '__main__':
    main()

"""
Review Prompts

Default prompts for the review model. The system prompt pins the issue
table format that the issue extractor understands.
"""


DIFF_PLACEHOLDER = "{diff}"

DEFAULT_SYSTEM_PROMPT = """You are a senior engineer reviewing a pull request.
Answer in markdown with exactly these sections:

## Score
A score from 0 to 100 and one sentence explaining it.

## Issues
One table row per issue, using this header:

| File | Old line | New line | Side | Code | Severity | Category | Problem | Suggestion |
|---|---|---|---|---|---|---|---|---|

- File: path as it appears after `+++ b/` in the diff.
- Old line / New line: line numbers in the old and new file; use `-` when not applicable.
- Side: `new` for added or unchanged lines, `old` for removed lines; `-` when unsure.
- Code: copy one complete line from the diff verbatim, without the leading `+`/`-`. Never abbreviate with `...`.
- Severity: critical, major, minor or info.
- When suggesting a replacement, quote the current and the proposed code in backticks, e.g. change `a` to `b`.

## Changes
Bullet list of what the change does.

## Summary
A short overall assessment.
"""

DEFAULT_USER_TEMPLATE = """Review the following diff:

```diff
{diff}
```
"""


def build_user_prompt(template: str, diff_text: str) -> str:
    """Substitute the diff into the user prompt template."""
    return template.replace(DIFF_PLACEHOLDER, diff_text)


def truncate_diff(diff_text: str, max_chars: int) -> str:
    """Cut an oversized diff for the prompt, marking the cut."""
    if max_chars <= 0 or len(diff_text) <= max_chars:
        return diff_text
    return diff_text[:max_chars] + "\n...(truncated)"

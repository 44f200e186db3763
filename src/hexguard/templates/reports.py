# src/hexguard/templates/reports.py
"""Pull-request and blocked-issue bodies, plus naming conventions."""

import json
from collections.abc import Sequence
from typing import Any

from hexguard.contracts import LockChange, VerificationResult
from hexguard.evaluation.schema import Assessment
from hexguard.templates.base import TextTemplate

ISSUE_TITLE_PREFIX = "Dependency update blocked"


def _first_or(values: Sequence[str], fallback: str) -> str:
    if values and isinstance(values[0], str):
        return values[0]
    return fallback


def _or_na(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return "n/a"


_PR_BODY = TextTemplate(
    """\
> 🤖 **AI-assisted dependency update**: this PR was created by `hexguard`,
> which performs an automated review of the dependency diff to identify
> potential security concerns, breaking changes, and compatibility risks. It
> makes a best effort attempt to automatically fix compatibility issues when
> possible, but still, like with any AI code changes requires human review to
> confirm the safety of the update and verify that the changes look reasonable.

## Dependency Changes
{% for change in lock_changes %}
- {{ change.dep }}: {{ change.from_version }} -> {{ change.to_version }}
{% endfor %}

## Diff Summaries
{% for a in assessments %}
- {{ a.label }}: {{ a.evaluation.change_summary }}
{% endfor %}

## Review Checks
{% for a in assessments %}
- **{{ a.label }}**
{% if a.evaluation.security_status == "none" %}
  - ✅ **Security**: no security concerns identified from the package diff.
{% elif a.evaluation.security_status == "unknown" %}
  - 👀 **Security**: security risk could not be fully determined from the diff alone.
{% else %}
  - ⚠️ **Security**: {{ a.evaluation.security_concerns | first_or("security concerns identified from the package diff") }}
{% endif %}
{% if a.evaluation.compatibility == "compatible" %}
  - ✅ **Compatibility**: this update appears compatible with this app based on diff review.
{% elif a.evaluation.compatibility == "incompatible" %}
  - ⚠️ **Compatibility**: incompatible based on diff review.
{% else %}
  - ⚠️ **Compatibility**: compatibility could not be fully confirmed from the diff alone.
{% endif %}
{% if a.evaluation.breaking_status == "none" %}
  - ✅ **Breaking changes**: no breaking changes identified from the package diff.
{% elif a.evaluation.breaking_status == "unknown" %}
  - 👀 **Breaking changes**: breaking-change risk could not be fully determined from the diff alone.
{% else %}
  - ⚠️ **Breaking changes**: {{ a.evaluation.breaking_changes | first_or("breaking changes identified from the package diff") }}
{% endif %}
{% if not loop.last %}

{% endif %}
{% endfor %}

## Review Notes
{% for a in assessments %}
- **{{ a.label }}**
  - Security summary: {{ a.evaluation.security_change_summary | or_na }}
  - Security notes: {{ a.evaluation.security_notes | or_na }}
  - Compatibility summary: {{ a.evaluation.compatibility_change_summary | or_na }}
  - Compatibility notes: {{ a.evaluation.compatibility_notes | or_na }}
{% if not loop.last %}

{% endif %}
{% endfor %}

## Verification
{% if verification.remediation_applied %}
- ⚠️ **Compatibility updates**: {{ verification.remediation_summary }}
{% else %}
- ✅ **Compatibility updates**: no app code changes were required; compile/tests passed.
{% endif %}

## Diff Links
{% for a in assessments %}
- {{ a.label }}: {{ a.diff_url }}
{% endfor %}

## Checks Performed
- Evaluated direct dependency diff using OpenCode for security, breaking changes, and compatibility notes
- Verified compile is free from warnings and test suite passes after update
- Evaluated direct and transitive dependency diffs with OpenCode
""",
    filters={"first_or": _first_or, "or_na": _or_na},
)

_ISSUE_BODY = TextTemplate(
    """\
## Dependency update blocked

Reason: {{ reason }}

## Context
```json
{{ context }}
```
"""
)


def branch_name(dep: str, version: str) -> str:
    return f"chore/deps/{dep}-{version}"


def commit_message(dep: str, from_version: str, to_version: str) -> str:
    return f"chore(deps): update {dep} from {from_version} to {to_version}"


def pr_title(dep: str, version: str) -> str:
    return f"chore(deps): update {dep} to {version}"


def issue_title(reason: str) -> str:
    return f"{ISSUE_TITLE_PREFIX}: {reason}"


def pr_body(
    lock_changes: Sequence[LockChange],
    assessments: Sequence[Assessment],
    verification: VerificationResult,
) -> str:
    """Markdown body for the update pull request."""
    return _PR_BODY.render(
        lock_changes=lock_changes,
        assessments=assessments,
        verification=verification,
    )


def issue_body(reason: str, context: dict[str, Any]) -> str:
    """Markdown body for the issue filed when a run is blocked."""
    return _ISSUE_BODY.render(reason=reason, context=format_context(context))


def format_context(context: dict[str, Any]) -> str:
    """Pretty-print a blocked context snapshot."""
    return json.dumps(context, indent=2, default=str, ensure_ascii=False)

"""Line-oriented regex classification of log text.

A rule table is an ordered tuple of :class:`PatternRule`. ``match_patterns``
scans text line by line and returns, per rule title, the first matching rule
and the truncated lines; ``issues_from_matches`` turns that into one Issue per title,
emitted in rule declaration order.
"""
from __future__ import annotations

import re
from typing import NamedTuple

from poddoctor.models import Issue, Severity

MAX_SAMPLE_CHARS = 200
ELLIPSIS = "..."


class PatternRule(NamedTuple):
    pattern: re.Pattern[str]
    title: str
    description: str
    severity: Severity


def _rule(regex: str, title: str, description: str, severity: Severity) -> PatternRule:
    return PatternRule(re.compile(regex, re.IGNORECASE), title, description, severity)


# Built once at import; never mutated, safe to share between concurrent diagnoses.
LOG_PATTERNS: tuple[PatternRule, ...] = (
    _rule(r"panic:", "Panic detected", "Application panicked", Severity.critical),
    _rule(r"fatal\s*(error)?:", "Fatal error", "Fatal error occurred", Severity.critical),
    _rule(r"out\s*of\s*memory", "Out of memory", "Application ran out of memory", Severity.critical),
    _rule(r"killed", "Process killed", "Process was killed", Severity.warning),
    _rule(r"connection\s*refused", "Connection refused", "Cannot connect to a service", Severity.warning),
    _rule(r"ECONNREFUSED", "Connection refused", "TCP connection refused", Severity.warning),
    _rule(r"permission\s*denied", "Permission denied", "Insufficient permissions", Severity.warning),
    _rule(r"access\s*denied", "Access denied", "Access was denied", Severity.warning),
    _rule(r"no\s*such\s*file", "File not found", "Required file not found", Severity.warning),
    _rule(r"timeout|timed?\s*out", "Timeout", "Operation timed out", Severity.warning),
    _rule(r"deadline\s*exceeded", "Deadline exceeded", "Operation deadline was exceeded", Severity.warning),
    _rule(r"certificate\s*(verify|validation)\s*failed", "Certificate error", "TLS certificate validation failed", Severity.warning),
    _rule(r"authentication\s*failed", "Auth failed", "Authentication failed", Severity.warning),
    _rule(r"unauthorized", "Unauthorized", "Unauthorized access attempt", Severity.warning),
    _rule(r"segmentation\s*fault", "Segfault", "Segmentation fault occurred", Severity.critical),
    _rule(r"stack\s*overflow", "Stack overflow", "Stack overflow error", Severity.critical),
    _rule(r"null\s*pointer", "Null pointer", "Null pointer exception", Severity.critical),
)


class PatternMatch(NamedTuple):
    rule: PatternRule  # first rule that hit this title
    samples: list[str]


def truncate_line(line: str, max_len: int = MAX_SAMPLE_CHARS) -> str:
    if len(line) <= max_len:
        return line
    return line[: max_len - len(ELLIPSIS)] + ELLIPSIS


def match_patterns(rules: tuple[PatternRule, ...] | list[PatternRule], text: str) -> dict[str, PatternMatch]:
    """Return {title: PatternMatch} ordered by rule declaration, not by match order.

    Blank lines are skipped. Rules sharing a title (alternate spellings of the
    same condition) count a line once.
    """
    found: dict[str, PatternMatch] = {}
    for line in text.splitlines():
        if not line.strip():
            continue
        hit: set[str] = set()
        for rule in rules:
            if rule.title in hit or not rule.pattern.search(line):
                continue
            hit.add(rule.title)
            if rule.title not in found:
                found[rule.title] = PatternMatch(rule, [])
            found[rule.title].samples.append(truncate_line(line))
    ordered: dict[str, PatternMatch] = {}
    for rule in rules:
        if rule.title in found and rule.title not in ordered:
            ordered[rule.title] = found[rule.title]
    return ordered


def issues_from_matches(matches: dict[str, PatternMatch], container: str) -> list[Issue]:
    """One Issue per matched title, carrying the first sample and the occurrence count."""
    issues: list[Issue] = []
    for title, match in matches.items():
        samples = match.samples
        details = {
            "container": container,
            "match_count": str(len(samples)),
            "sample_match": samples[0],
        }
        if len(samples) > 1:
            details["additional_matches"] = f"{len(samples) - 1} more occurrences"
        issues.append(Issue(
            severity=match.rule.severity,
            category="logs",
            title=f"[{container}] {title}",
            description=match.rule.description,
            details=details,
        ))
    return issues

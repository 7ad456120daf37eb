"""
Property-based tests for report aggregation and failure classification.

Uses Hypothesis to test verdict invariants across random check sequences.
"""

from hypothesis import given, strategies as st

from krbdiag.core.report import DiagnosticReport, Outcome
from krbdiag.core.types import FailureCategory, Status
from krbdiag.krb5.classifier import RULES, classify_failure, describe_failure


# =============================================================================
# STRATEGIES
# =============================================================================

status_strategy = st.sampled_from(list(Status))

check_strategy = st.tuples(
    st.from_regex(r"[A-Za-z][A-Za-z0-9 ]{0,20}", fullmatch=True),
    status_strategy,
)

# Free text with none of the classifier keywords in it
neutral_text_strategy = st.from_regex(r"[0-9 ,.()_]{0,40}", fullmatch=True)


def build_report(checks):
    report = DiagnosticReport()
    report.section("Step")
    for name, status in checks:
        report.add(name, status)
    return report


# =============================================================================
# REPORT PROPERTIES
# =============================================================================


class TestReportProperties:
    """Property-based tests for the run verdict."""

    @given(checks=st.lists(check_strategy, max_size=30))
    def test_exit_code_tracks_failures(self, checks):
        """Property: exit code is 1 exactly when some check FAILED."""
        report = build_report(checks)
        failed = any(status is Status.FAILED for _, status in checks)
        assert report.exit_code == (1 if failed else 0)
        assert (report.outcome is Outcome.FAILED) == failed

    @given(checks=st.lists(check_strategy, max_size=30))
    def test_counts_partition_results(self, checks):
        """Property: per-status counts add up to the number of checks."""
        report = build_report(checks)
        counts = report.counts()
        assert set(counts) == set(Status)
        assert sum(counts.values()) == len(report) == len(checks)

    @given(
        checks=st.lists(
            st.tuples(
                st.from_regex(r"[a-z]{1,8}", fullmatch=True),
                st.sampled_from([Status.PASSED, Status.INFO, Status.SKIPPED, Status.WARNING]),
            ),
            max_size=20,
        )
    )
    def test_non_failures_never_fail_run(self, checks):
        """Property: warnings, info and skips alone exit 0."""
        report = build_report(checks)
        assert report.exit_code == 0
        if any(status is Status.WARNING for _, status in checks):
            assert report.outcome is Outcome.PASSED_WITH_WARNINGS
        else:
            assert report.outcome is Outcome.PASSED

    @given(checks=st.lists(check_strategy, max_size=30))
    def test_failed_checks_keep_order(self, checks):
        """Property: failed check names are listed in execution order."""
        report = build_report(checks)
        assert report.failed_checks() == [n for n, s in checks if s is Status.FAILED]

    @given(checks=st.lists(check_strategy, max_size=30))
    def test_listener_sees_every_result_once(self, checks):
        """Property: the listener receives each result exactly once, in order."""
        seen = []
        report = DiagnosticReport(listener=seen.append)
        for name, status in checks:
            report.add(name, status)
        assert seen == list(report.results)


# =============================================================================
# CLASSIFIER PROPERTIES
# =============================================================================


class TestClassifierProperties:
    """Property-based tests for failure classification."""

    @given(
        prefix=neutral_text_strategy,
        suffix=neutral_text_strategy,
        phrase=st.sampled_from(["clock skew", "Clock Skew", "CLOCK SKEW"]),
        cause=st.one_of(st.none(), st.sampled_from(["Pre-authentication failed", "Connection refused"])),
    )
    def test_clock_skew_has_priority(self, prefix, suffix, phrase, cause):
        """Property: clock skew wins over every other category."""
        message = f"{prefix}{phrase} too great{suffix}"
        assert classify_failure(message, cause).category is FailureCategory.CLOCK_SKEW

    @given(message=neutral_text_strategy, cause=st.one_of(st.none(), neutral_text_strategy))
    def test_unmatched_text_is_generic(self, message, cause):
        """Property: text without known phrases gets the generic checklist."""
        assert classify_failure(message, cause).category is FailureCategory.GENERIC

    @given(message=st.text(max_size=60), cause=st.one_of(st.none(), st.text(max_size=60)))
    def test_every_description_has_three_steps(self, message, cause):
        """Property: any classification carries three numbered suggestions."""
        description = describe_failure(message, cause)
        for number in (1, 2, 3):
            assert f"\n     {number}. " in description

    def test_rules_are_distinct_categories(self):
        categories = [rule.category for rule in RULES]
        assert len(set(categories)) == len(categories)
        assert FailureCategory.GENERIC not in categories

    @given(message=st.text(max_size=60), cause=st.text(min_size=1, max_size=60))
    def test_cause_is_always_reported(self, message, cause):
        """Property: a non-empty cause appears verbatim in the description."""
        assert f"Underlying cause: {cause}" in describe_failure(message, cause)

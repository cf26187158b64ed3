"""Tests for DimensionContext, snapshots and digest parsing."""

import json

from lore_bootstrap.dimension_context import (
    DimensionContext,
    DimensionDigest,
    parse_dimension_digest,
)


def _ctx():
    ctx = DimensionContext({"projectName": "Demo", "primaryLang": "objectivec"})
    ctx.add_dimension_digest("project-profile", {
        "summary": "UIKit app, 4 modules",
        "candidateCount": 2,
        "keyFindings": ["MVC"],
        "crossRefs": {"architecture": "check module boundaries"},
        "gaps": ["no tests"],
        "remainingTasks": [{"signal": "networking", "reason": "budget"}],
    })
    ctx.add_submitted_candidate("project-profile", {"title": "Module map", "subTopic": "overview"})
    return ctx


class TestDimensionContext:
    def test_snapshot_contents(self):
        snap = _ctx().build_context_for_dimension("architecture")
        assert snap.current_dimension == "architecture"
        assert snap.project["projectName"] == "Demo"
        assert snap.previous_dimensions["project-profile"]["keyFindings"] == ["MVC"]
        assert snap.existing_candidates == [
            {"dimId": "project-profile", "title": "Module map", "subTopic": "overview"},
        ]

    def test_snapshot_is_isolated(self):
        ctx = _ctx()
        snap = ctx.build_context_for_dimension("architecture")
        snap.previous_dimensions["project-profile"]["keyFindings"].append("mutated")
        snap.project["projectName"] = "Other"
        snap.existing_candidates.clear()

        again = ctx.build_context_for_dimension("architecture")
        assert again.previous_dimensions["project-profile"]["keyFindings"] == ["MVC"]
        assert again.project["projectName"] == "Demo"
        assert len(again.existing_candidates) == 1

    def test_digest_stamped_and_replaced(self):
        ctx = _ctx()
        first = ctx.completed_dimensions["project-profile"]
        assert first.dim_id == "project-profile"
        assert first.completed_at is not None

        ctx.add_dimension_digest("project-profile", DimensionDigest(summary="rerun"))
        assert ctx.completed_dimensions["project-profile"].summary == "rerun"
        assert len(ctx.completed_dimensions) == 1

    def test_stored_digest_is_a_copy(self):
        ctx = DimensionContext()
        digest = DimensionDigest(summary="s", key_findings=["a"])
        ctx.add_dimension_digest("d", digest)
        digest.key_findings.append("b")
        assert ctx.completed_dimensions["d"].key_findings == ["a"]

    def test_candidates_append_on_rerun(self):
        ctx = _ctx()
        ctx.add_submitted_candidate("project-profile", {"title": "Module map v2"})
        titles = [c.title for c in ctx.get_existing_candidates_for_dimension("project-profile")]
        assert titles == ["Module map", "Module map v2"]
        assert ctx.get_existing_candidates_for_dimension("architecture") == []

    def test_digests_summary_text(self):
        assert DimensionContext().get_digests_summary_text() == "(no completed dimensions yet)"
        text = _ctx().get_digests_summary_text()
        assert "### project-profile" in text
        assert "- -> architecture: check module boundaries" in text
        assert "Remaining: networking" in text

    def test_json_round_trip(self):
        ctx = _ctx()
        restored = DimensionContext.from_json(json.loads(json.dumps(ctx.to_json())))
        assert restored.project_context == ctx.project_context
        assert restored.completed_dimensions["project-profile"].summary == "UIKit app, 4 modules"
        assert restored.submitted_candidates[0].title == "Module map"
        assert restored.has_digest("project-profile")


class TestSyntheticDigests:
    def test_stub(self):
        assert DimensionDigest.stub(3).candidate_count == 3

    def test_failure_mentions_error(self):
        d = DimensionDigest.failure("timeout")
        assert d.gaps == ["production failed: timeout"]

    def test_empty(self):
        assert DimensionDigest.empty().gaps == ["no signals extracted"]


class TestParseDimensionDigest:
    def test_fenced_block(self):
        reply = (
            "I submitted two candidates.\n```json\n"
            '{"dimensionDigest": {"summary": "done", "candidateCount": 2, "gaps": ["x"]}}\n```'
        )
        d = parse_dimension_digest(reply)
        assert d.summary == "done"
        assert d.candidate_count == 2
        assert d.gaps == ["x"]
        assert d.dim_id == ""

    def test_bare_inline(self):
        reply = 'Summary follows {"dimensionDigest": {"summary": "inline", "candidateCount": 1}} thanks'
        assert parse_dimension_digest(reply).summary == "inline"

    def test_fence_without_marker_is_skipped(self):
        reply = (
            '```json\n{"other": 1}\n```\n'
            '{"dimensionDigest": {"summary": "later"}}'
        )
        assert parse_dimension_digest(reply).summary == "later"

    def test_count_only_is_enough(self):
        assert parse_dimension_digest('{"dimensionDigest": {"candidateCount": 4}}').candidate_count == 4

    def test_unusable_replies(self):
        assert parse_dimension_digest(None) is None
        assert parse_dimension_digest("") is None
        assert parse_dimension_digest(42) is None
        assert parse_dimension_digest("just text") is None
        assert parse_dimension_digest('{"dimensionDigest": {"keyFindings": []}}') is None
        assert parse_dimension_digest('{"dimensionDigest": {"summary": "unterminated"') is None
        assert parse_dimension_digest('{"dimensionDigest": "not an object"}') is None

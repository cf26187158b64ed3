"""Tests for dimension definitions and YAML loading."""

import pytest

from lore_bootstrap.dimensions import (
    DEFAULT_DIMENSIONS,
    Dimension,
    enhance_dimensions,
    load_dimensions,
    validate_dimensions,
)
from lore_bootstrap.errors import DimensionConfigError


class TestDefaults:
    def test_order(self):
        assert [d.id for d in DEFAULT_DIMENSIONS] == [
            "project-profile",
            "objc-deep-scan",
            "category-scan",
            "code-standard",
            "architecture",
            "code-pattern",
            "event-and-data-flow",
            "best-practice",
            "agent-guidelines",
        ]

    def test_output_types(self):
        by_id = {d.id: d for d in DEFAULT_DIMENSIONS}
        assert by_id["agent-guidelines"].output_type == "skill"
        assert by_id["agent-guidelines"].is_digest_only
        assert by_id["architecture"].output_type == "dual"
        assert by_id["code-pattern"].output_type == "candidate"
        assert by_id["code-pattern"].default_knowledge_type == "code-pattern"

    def test_meta(self):
        meta = DEFAULT_DIMENSIONS[0].to_meta()
        assert meta["id"] == "project-profile"
        assert meta["outputType"] == "dual"
        assert meta["knowledgeTypes"] == ["architecture"]
        assert meta["skillEnhanced"] is False


class TestLoadDimensions:
    def test_top_level_list(self, tmp_path):
        path = tmp_path / "dims.yaml"
        path.write_text(
            "- id: layers\n"
            "  label: Layers\n"
            "  skillWorthy: true\n"
            "  dualOutput: true\n"
            "  knowledgeTypes: [architecture]\n"
            "- id: rules\n"
            "  skill_worthy: true\n"
        )
        dims = load_dimensions(path)
        assert [d.id for d in dims] == ["layers", "rules"]
        assert dims[0].output_type == "dual"
        assert dims[1].label == "rules"
        assert dims[1].is_digest_only

    def test_mapping_form(self, tmp_path):
        path = tmp_path / "dims.yaml"
        path.write_text("dimensions:\n  - id: only\n    knowledgeTypes: code-pattern\n")
        dims = load_dimensions(path)
        assert dims[0].knowledge_types == ("code-pattern",)

    @pytest.mark.parametrize("content", [
        "- id: a\n- id: a\n",
        "- label: no id\n",
        "[]\n",
        "just a string\n",
        "- [nested]\n",
        "dimensions: [\n",
    ])
    def test_invalid(self, tmp_path, content):
        path = tmp_path / "dims.yaml"
        path.write_text(content)
        with pytest.raises(DimensionConfigError):
            load_dimensions(path)


def test_validate_rejects_duplicates():
    with pytest.raises(DimensionConfigError):
        validate_dimensions([Dimension(id="a", label="A"), Dimension(id="a", label="A2")])


def test_enhance_dimensions():
    dims = [Dimension(id="a", label="A", guide="base"), Dimension(id="b", label="B")]
    out = enhance_dimensions(dims, {"a": "see style guide"})
    assert out[0].skill_enhanced
    assert out[0].guide == "base [Reference] see style guide"
    assert out[1] is dims[1]
    assert not dims[0].skill_enhanced
    assert enhance_dimensions(dims, None) == dims
    assert out[0].to_meta()["skillEnhanced"] is True

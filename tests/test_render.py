"""Tests for snapshot rendering and style loading."""

import json

import pytest
import yaml

from gitprompt.exceptions import ConfigError, RenderError
from gitprompt.git.models import StatusSnapshot
from gitprompt.render import Renderer, load_styles, render_template


@pytest.fixture
def snapshot():
    return StatusSnapshot(
        root="/work/proj",
        base_name="proj",
        branch="feature-1",
        upstream="origin/feature-1",
        ahead=2,
        behind=1,
        base_branch="origin/feature",
        base_behind=4,
    )


class TestRenderer:
    def test_pretty_is_indented_json(self, snapshot):
        out = Renderer().render(snapshot, "pretty")
        assert json.loads(out)["ahead"] == 2
        assert "\n  " in out

    def test_json_is_compact(self, snapshot):
        out = Renderer().render(snapshot, "json")
        assert "\n" not in out
        assert json.loads(out)["branch"] == "feature-1"

    def test_inline_format(self, snapshot):
        assert Renderer().render(snapshot, "format:{branch}+{ahead}") == "feature-1+2"
        assert Renderer().render(snapshot, "f:{behind}") == "1"

    def test_builtin_plain(self, snapshot):
        assert Renderer().render(snapshot, "plain") == "proj:feature-1"

    def test_builtin_counts(self, snapshot):
        out = Renderer().render(snapshot, "counts")
        assert out == "feature-1 +2 -1 (origin/feature -4)"

    def test_custom_styles_passed_at_construction(self, snapshot):
        renderer = Renderer({"short": "[{branch}]", "plain": "{branch}"})
        assert renderer.render(snapshot, "short") == "[feature-1]"
        assert renderer.render(snapshot, "plain") == "feature-1"
        assert "short" in renderer.styles

    def test_unknown_style(self, snapshot):
        with pytest.raises(RenderError, match="Unknown style"):
            Renderer().render(snapshot, "zsh-fancy")

    def test_renderers_do_not_share_styles(self, snapshot):
        Renderer({"mine": "{branch}"})
        with pytest.raises(RenderError):
            Renderer().render(snapshot, "mine")


class TestRenderTemplate:
    def test_unknown_field(self, snapshot):
        with pytest.raises(RenderError, match="Unknown field"):
            render_template("{nope}", snapshot)

    def test_positional_field_rejected(self, snapshot):
        with pytest.raises(RenderError):
            render_template("{}", snapshot)

    def test_malformed_template(self, snapshot):
        with pytest.raises(RenderError, match="Invalid template"):
            render_template("{branch", snapshot)

    def test_format_spec(self, snapshot):
        assert render_template("{ahead:03d}", snapshot) == "002"

    def test_conversion(self, snapshot):
        assert render_template("{branch!r}", snapshot) == "'feature-1'"

    @pytest.mark.parametrize(
        "template",
        ["{branch.__class__}", "{branch[0]}", "{ahead:{branch.__doc__}}"],
    )
    def test_attribute_and_index_access_rejected(self, snapshot, template):
        with pytest.raises(RenderError, match="Unknown field"):
            render_template(template, snapshot)

    def test_nested_field_in_format_spec(self, snapshot):
        assert render_template("{ahead:>{behind}}", snapshot) == "2"


class TestLoadStyles:
    def test_loads_mapping(self, tmp_path):
        path = tmp_path / "styles.yaml"
        path.write_text(yaml.dump({"styles": {"tiny": "{branch}", "pair": "{ahead}/{behind}"}}))
        assert load_styles(path) == {"tiny": "{branch}", "pair": "{ahead}/{behind}"}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "styles.yaml"
        path.write_text("")
        assert load_styles(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Failed to read"):
            load_styles(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "styles.yaml"
        path.write_text("styles: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_styles(path)

    def test_styles_must_be_mapping(self, tmp_path):
        path = tmp_path / "styles.yaml"
        path.write_text("styles:\n  - a\n  - b\n")
        with pytest.raises(ConfigError, match="'styles' mapping"):
            load_styles(path)

    def test_template_must_be_string(self, tmp_path):
        path = tmp_path / "styles.yaml"
        path.write_text("styles:\n  n: 3\n")
        with pytest.raises(ConfigError, match="not a string"):
            load_styles(path)

from datetime import datetime, timezone

import pytest

from openapi_dyalog.compiler.context import DocumentContext, ModelContext, ModelProperty
from openapi_dyalog.generator.templates import TemplateEngine, TemplateError, save_output, template_variables

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class TestTemplateVariables:
    def test_custom_entries_merged_in_snake_case(self):
        ctx = DocumentContext(generated_at=FIXED_TIME, custom={"className": "PetClient", "title": "Override"})
        variables = template_variables(ctx)
        assert variables["class_name"] == "PetClient"
        assert variables["title"] == "Override"
        assert "custom" not in variables


class TestTemplateEngine:
    def test_lists_packaged_templates(self):
        names = TemplateEngine().list_templates()
        assert "README.md.j2" in names
        assert "APLSource/_tags/endpoint.aplf.j2" in names
        assert "APLSource/models/model.aplc.j2" in names

    def test_render_string_with_filters(self):
        engine = TemplateEngine()
        ctx = DocumentContext(title="it's", description="a\nb", generated_at=FIXED_TIME)
        out = engine.render_string("{{ title|apl_string }}|{{ description|comment_lines }}|{{ 'x-y'|sanitize }}", ctx)
        assert out == "'it''s'|⍝ a\n⍝ b|⍙x⍙45⍙y"

    def test_render_model(self):
        ctx = ModelContext(
            class_name="Pet",
            api_name="Pet",
            type="namespace",
            properties=[ModelProperty(api_name="pet-name", name="petName", type="str", is_required=True)],
        )
        out = TemplateEngine().render("APLSource/models/model.aplc.j2", ctx)
        assert out.startswith(":Class Pet\n")
        assert ":Field Public petName   ⍝ str, required" in out
        assert "petName←ns.⍙pet⍙45⍙name" in out
        assert out.rstrip().endswith(":EndClass")

    def test_override_directory_wins(self, tmp_path):
        (tmp_path / "APLSource").mkdir()
        (tmp_path / "APLSource" / "Version.aplf.j2").write_text("custom {{ title }}\n", encoding="utf-8")
        engine = TemplateEngine(tmp_path)
        ctx = DocumentContext(title="Pets", generated_at=FIXED_TIME)
        assert engine.render("APLSource/Version.aplf.j2", ctx) == "custom Pets\n"
        # templates not overridden still come from the package
        assert engine.template_exists("README.md.j2")

    def test_missing_override_directory(self, tmp_path):
        with pytest.raises(TemplateError):
            TemplateEngine(tmp_path / "nope")

    def test_missing_template(self):
        with pytest.raises(TemplateError, match="not found"):
            TemplateEngine().render("nope.j2", DocumentContext(generated_at=FIXED_TIME))

    def test_syntax_error_is_wrapped(self, tmp_path):
        (tmp_path / "broken.j2").write_text("{% if %}", encoding="utf-8")
        with pytest.raises(TemplateError, match="broken.j2"):
            TemplateEngine(tmp_path).render("broken.j2", DocumentContext(generated_at=FIXED_TIME))


class TestSaveOutput:
    def test_creates_parent_directories(self, tmp_path):
        target = tmp_path / "a" / "b" / "file.txt"
        assert save_output("hello", target) is True
        assert target.read_text(encoding="utf-8") == "hello"

    def test_identical_content_is_not_rewritten(self, tmp_path):
        target = tmp_path / "file.txt"
        save_output("hello", target)
        assert save_output("hello", target) is False
        assert save_output("changed", target) is True
        assert target.read_text(encoding="utf-8") == "changed"

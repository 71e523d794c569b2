import logging
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

from openapi_dyalog.compiler.context import ModelContext
from openapi_dyalog.config import GeneratorOptions
from openapi_dyalog.generator.code import CodeGenerator
from openapi_dyalog.generator.templates import TemplateEngine

FIXTURES = Path(__file__).parent / "fixtures"
FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _generator(output: Path, spec: str = "petstore.yaml", **custom) -> CodeGenerator:
    options = GeneratorOptions(
        specification_path=str(FIXTURES / spec),
        output_directory=str(output),
        custom=custom,
    )
    return CodeGenerator(options)


def _snapshot(root: Path) -> dict[str, str]:
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*")) if p.is_file()
    }


class TestCodeGenerator:
    def test_generates_expected_layout(self, tmp_path):
        out = tmp_path / "out"
        report = _generator(out).generate(generated_at=FIXED_TIME)

        assert report.success
        files = set(_snapshot(out))
        assert {
            "APLSource/_tags/pets/ListPets.aplf",
            "APLSource/_tags/pets/CreatePet.aplf",
            "APLSource/_tags/pets/ShowPetById.aplf",
            "APLSource/_tags/pets/UpdatePet.aplf",
            "APLSource/_tags/petPhotos/UploadPhoto.aplf",
            "APLSource/_tags/default/GetHealth.aplf",
            "APLSource/models/Pet.aplc",
            "APLSource/models/Owner.aplc",
            "APLSource/models/CreatePetRequest.aplc",
            "APLSource/Client.aplc",
            "APLSource/utils.apln",
            "APLSource/Version.aplf",
            "README.md",
            "petstore.yaml",
        } == files
        assert len(report.written) == len(files)

    def test_endpoint_content(self, tmp_path):
        out = tmp_path / "out"
        _generator(out).generate(generated_at=FIXED_TIME)

        show = (out / "APLSource/_tags/pets/ShowPetById.aplf").read_text(encoding="utf-8")
        assert show.startswith("r←client ShowPetById argsNs;req;path\n")
        assert "⍝ GET /pets/{petId}" in show
        assert "path←'/pets/',(⍕argsNs.petId)" in show
        assert ":If 0=argsNs.⎕NC'petId'" in show
        assert "req←client.Authorize req(⊂'apiKey')" in show

        list_pets = (out / "APLSource/_tags/pets/ListPets.aplf").read_text(encoding="utf-8")
        assert "req.Params,←⊂'limit'(argsNs.limit)" in list_pets
        assert "Authorize" not in list_pets

        create = (out / "APLSource/_tags/pets/CreatePet.aplf").read_text(encoding="utf-8")
        assert "⍝   body (CreatePetRequest, required)" in create
        assert "req.ContentType←'application/json'" in create

        upload = (out / "APLSource/_tags/petPhotos/UploadPhoto.aplf").read_text(encoding="utf-8")
        assert "##.##.utils.AddFile 'file'(argsNs.file)'application/octet-stream'" in upload
        assert "##.##.utils.AddField 'caption'(argsNs.caption)" in upload

    def test_client_and_models(self, tmp_path):
        out = tmp_path / "out"
        _generator(out).generate(generated_at=FIXED_TIME)

        client = (out / "APLSource/Client.aplc").read_text(encoding="utf-8")
        assert client.startswith(":Class Client\n")
        assert "BaseURL←'https://petstore.example.com/v1'" in client
        assert "petPhotos.UploadPhoto←⎕THIS∘tags.petPhotos.UploadPhoto" in client
        assert "req.Headers⍪←'X-API-Key'(Credentials⍎scheme)" in client

        pet = (out / "APLSource/models/Pet.aplc").read_text(encoding="utf-8")
        assert ":Field Public owner   ⍝ Owner" in pet

        synthetic = (out / "APLSource/models/CreatePetRequest.aplc").read_text(encoding="utf-8")
        assert "⍝ Synthesized from an inline request body schema." in synthetic

        version = (out / "APLSource/Version.aplf").read_text(encoding="utf-8")
        assert "'Petstore' '1.2.0' '2024-01-02T03:04:05Z'" in version

    def test_custom_client_class_name(self, tmp_path):
        out = tmp_path / "out"
        _generator(out, class_name="PetClient").generate(generated_at=FIXED_TIME)
        assert (out / "APLSource/PetClient.aplc").read_text(encoding="utf-8").startswith(":Class PetClient")
        assert not (out / "APLSource/Client.aplc").exists()
        assert "⎕NEW PetClient" in (out / "README.md").read_text(encoding="utf-8")

    def test_client_class_name_is_sanitized(self, tmp_path):
        out = tmp_path / "out"
        _generator(out, class_name="../x").generate(generated_at=FIXED_TIME)
        clients = list((out / "APLSource").glob("*.aplc"))
        assert len(clients) == 1
        assert "/" not in clients[0].name
        assert clients[0].stem.startswith("⍙")
        assert not (tmp_path / "x.aplc").exists()
        assert not (out / "x.aplc").exists()

    def test_output_is_idempotent(self, tmp_path):
        out = tmp_path / "out"
        _generator(out).generate(generated_at=FIXED_TIME)
        first = _snapshot(out)

        report = _generator(out).generate(generated_at=FIXED_TIME)
        assert _snapshot(out) == first
        assert report.written == []
        assert len(report.unchanged) == len(first)

    def test_only_changed_files_are_rewritten(self, tmp_path):
        out = tmp_path / "out"
        _generator(out).generate(generated_at=FIXED_TIME)
        target = out / "APLSource/models/Owner.aplc"
        target.write_text("edited", encoding="utf-8")

        report = _generator(out).generate(generated_at=FIXED_TIME)
        assert report.written == [Path("APLSource/models/Owner.aplc")]
        assert target.read_text(encoding="utf-8").startswith(":Class Owner")

    def test_unsupported_body_is_skipped_and_reported(self, tmp_path):
        out = tmp_path / "out"
        report = _generator(out, spec="unsupported.yaml").generate(generated_at=FIXED_TIME)

        assert not report.success
        assert [f.operation_id for f in report.failures] == ["CreateNote"]
        assert (out / "APLSource/_tags/notes/ListNotes.aplf").exists()
        assert not (out / "APLSource/_tags/notes/CreateNote.aplf").exists()
        assert (out / "APLSource/Client.aplc").exists()

    def test_logs_each_artifact(self, tmp_path, caplog):
        out = tmp_path / "out"
        with caplog.at_level(logging.INFO, logger="openapi_dyalog"):
            _generator(out).generate(generated_at=FIXED_TIME)
            _generator(out).generate(generated_at=FIXED_TIME)
        assert "Generated: APLSource/_tags/pets/ListPets.aplf" in caplog.messages
        assert "Copied: petstore.yaml" in caplog.messages
        assert "Unchanged: APLSource/_tags/pets/ListPets.aplf" in caplog.messages
        assert "Unchanged: petstore.yaml" in caplog.messages

    @patch("openapi_dyalog.generator.code.load_document")
    def test_load_honours_disable_validation(self, mock_load, tmp_path):
        mock_load.return_value = MagicMock()
        options = GeneratorOptions(specification_path="api.yaml", disable_validation=True)
        CodeGenerator(options).load()
        mock_load.assert_called_once_with(Path("api.yaml"), validate=False)

    def test_render_dispatches_on_kind(self, tmp_path):
        engine = MagicMock(spec=TemplateEngine)
        engine.render.return_value = "content"
        gen = CodeGenerator(GeneratorOptions(specification_path="api.yaml"), engine=engine)

        results = gen.render(ModelContext(class_name="Pet", api_name="Pet"), tmp_path)

        assert results == [(Path("APLSource/models/Pet.aplc"), True)]
        engine.render.assert_called_once()
        assert engine.render.call_args.args[0] == "APLSource/models/model.aplc.j2"

from openapi_dyalog.compiler.types import map_type, reference_type
from openapi_dyalog.parser.base import Schema


class TestMapType:
    def test_primitives(self):
        assert map_type(Schema(type="string")) == "str"
        assert map_type(Schema(type="integer")) == "int"
        assert map_type(Schema(type="number")) == "number"
        assert map_type(Schema(type="boolean")) == "bool"
        assert map_type(Schema(type="object")) == "namespace"

    def test_unknown_or_missing_type(self):
        assert map_type(Schema()) == "any"
        assert map_type(Schema(type="file")) == "any"

    def test_arrays(self):
        assert map_type(Schema(type="array")) == "array"
        assert map_type(Schema(type="array", items=Schema(type="string"))) == "array[str]"
        nested = Schema(type="array", items=Schema(type="array", items=Schema(type="integer")))
        assert map_type(nested) == "array[array[int]]"

    def test_reference(self):
        assert map_type(Schema(ref="#/components/schemas/pet")) == "Pet"
        assert map_type(Schema(ref="#/definitions/Pet")) == "Pet"

    def test_array_of_references(self):
        schema = Schema(type="array", items=Schema(ref="#/components/schemas/Pet"))
        assert map_type(schema) == "array[Pet]"

    def test_malformed_reference_is_any(self):
        assert map_type(Schema(ref="")) == "any"
        assert map_type(Schema(ref="#/components/parameters/Limit")) == "any"

    def test_unknown_reference_is_any_when_known_given(self):
        schema = Schema(ref="#/components/schemas/Missing")
        assert map_type(schema, known={"Pet": Schema()}) == "any"
        assert map_type(schema) == "Missing"


class TestReferenceType:
    def test_not_a_reference(self):
        assert reference_type(Schema(type="string")) is None

    def test_known_reference(self):
        assert reference_type(Schema(ref="#/components/schemas/Pet"), known={"Pet"}) == "Pet"

    def test_class_name_mapping(self):
        ref = Schema(ref="#/components/schemas/Pet")
        assert reference_type(ref, known={"pet": "Pet", "Pet": "Pet2"}) == "Pet2"
        assert map_type(Schema(type="array", items=ref), {"Pet": "Pet2"}) == "array[Pet2]"

    def test_class_name_mapping_without_target(self):
        assert reference_type(Schema(ref="#/components/schemas/Cat"), known={"Pet": "Pet2"}) is None

"""
Tests for task record models and validation
"""

import pytest
from datetime import date

from farmlog.errors import (
    ImmutableField,
    InvalidDate,
    InvalidFieldValue,
    InvalidVariant,
    MissingRequiredField,
    ValidationError,
)
from farmlog.models import (
    VARIANT_MODELS,
    FertigationRecord,
    MaintenanceRecord,
    PlantationRecord,
    TaskType,
    apply_patch,
    parse_task_record,
    parse_task_records,
    validate_task_record,
)


class TestVariants:
    """Test the tagged union of task variants"""

    def test_every_type_has_a_model(self):
        """Test that all seven types map onto a variant model"""
        assert set(VARIANT_MODELS) == {t.value for t in TaskType}
        assert VARIANT_MODELS["plant-maintenance"] is VARIANT_MODELS["tool-maintenance"] is MaintenanceRecord

    def test_variant_field_sets(self):
        """Test each variant carries exactly its own attributes"""
        assert VARIANT_MODELS["fertigation"].variant_fields() == ("fertilizer_name", "quantity", "duration", "crop")
        assert VARIANT_MODELS["irrigation"].variant_fields() == ("method", "duration", "area", "water_source")
        assert VARIANT_MODELS["pesticide"].variant_fields() == ("chemical", "chemical_type", "quantity", "method", "crop")
        assert VARIANT_MODELS["herbicide"].variant_fields() == ("herbicide_name", "quantity", "area")
        assert VARIANT_MODELS["plantation"].variant_fields() == ("plant_name", "variety", "number", "area")
        assert MaintenanceRecord.variant_fields() == ("equipment", "issue", "parts", "time_spent")

    def test_wire_format_uses_camel_case(self):
        """Test to_dict emits camelCase keys and omits an unset owner"""
        record = validate_task_record(
            {"type": "fertigation", "date": "2024-05-01", "field": "A1", "fertilizerName": "NPK"},
            record_id="1",
        )
        data = record.to_dict()

        assert data["fertilizerName"] == "NPK"
        assert "fertilizer_name" not in data
        assert "owner" not in data

    def test_parse_dispatches_on_type(self):
        """Test decoding picks the variant from the type tag"""
        records = parse_task_records([
            {"id": "1", "type": "plantation", "date": "2024-05-01", "field": "A1", "plantName": "Tomato"},
            {"id": "2", "type": "tool-maintenance", "date": "2024-05-01", "field": "Shed", "timeSpent": "2h"},
        ])
        assert isinstance(records[0], PlantationRecord)
        assert records[0].plant_name == "Tomato"
        assert isinstance(records[1], MaintenanceRecord)
        assert records[1].time_spent == "2h"

    def test_parse_ignores_foreign_keys(self):
        """Test stored records with stray attributes still decode"""
        record = parse_task_record({
            "id": "1", "type": "fertigation", "date": "2024-05-01", "field": "A1", "plantName": "Tomato",
        })
        assert isinstance(record, FertigationRecord)
        assert not hasattr(record, "plant_name")


class TestValidateTaskRecord:
    """Test validation of untyped task input"""

    def test_valid_plantation(self):
        """Test a complete plantation record"""
        record = validate_task_record({
            "type": "plantation",
            "date": "2024-05-01",
            "field": " A1 ",
            "plantName": "Tomato",
            "number": 50,
        })
        assert isinstance(record, PlantationRecord)
        assert record.field == "A1"
        assert record.number == "50"
        assert record.notes == ""
        assert record.id == ""

    def test_foreign_attributes_dropped(self):
        """Test attributes from another variant are silently discarded"""
        record = validate_task_record({
            "type": "plantation", "date": "2024-05-01", "field": "A1", "method": "Drip", "chemical": "X",
        })
        data = record.to_dict()
        assert "method" not in data
        assert "chemical" not in data

    def test_snake_case_keys_accepted(self):
        """Test attribute names are accepted as well as wire names"""
        record = validate_task_record({"type": "plantation", "field": "A1", "plant_name": "Bean"})
        assert record.plant_name == "Bean"

    def test_identity_never_taken_from_input(self):
        """Test id and owner come only from the caller"""
        record = validate_task_record(
            {"type": "plantation", "field": "A1", "id": "forged", "owner": "mallory"},
            record_id="real",
            owner="alice",
        )
        assert record.id == "real"
        assert record.owner == "alice"

    @pytest.mark.parametrize("task_type", [None, "", "harvest", "Irrigation", 3])
    def test_invalid_variant(self, task_type):
        """Test unknown or missing types are rejected"""
        with pytest.raises(InvalidVariant):
            validate_task_record({"type": task_type, "field": "A1"})

    @pytest.mark.parametrize("value", ["2024-13-01", "2024-02-30", "yesterday", "01/05/2024"])
    def test_invalid_date(self, value):
        """Test non-calendar dates are rejected"""
        with pytest.raises(InvalidDate):
            validate_task_record({"type": "irrigation", "field": "A1", "date": value})

    def test_date_defaults_to_today(self):
        """Test a missing date becomes the supplied current day"""
        record = validate_task_record({"type": "irrigation", "field": "A1"}, today=date(2024, 3, 9))
        assert record.date == "2024-03-09"

    def test_date_object_accepted(self):
        """Test date objects are normalized to ISO strings"""
        record = validate_task_record({"type": "irrigation", "field": "A1", "date": date(2024, 1, 2)})
        assert record.date == "2024-01-02"

    def test_date_required_when_asked(self):
        """Test the server-side path refuses a missing date"""
        with pytest.raises(MissingRequiredField):
            validate_task_record({"type": "irrigation", "field": "A1"}, require_date=True)

    @pytest.mark.parametrize("field", [None, "", "   "])
    def test_field_required(self, field):
        """Test the field/plot identifier must not be blank"""
        with pytest.raises(MissingRequiredField) as exc:
            validate_task_record({"type": "irrigation", "field": field})
        assert exc.value.field == "field"

    @pytest.mark.parametrize("method,expected", [
        ("Drip", "Drip"),
        ("drip irrigation", "Drip"),
        ("Centre Pivot", "Centre Pivot"),
        ("Manual Watering", "Manual"),
        ("", ""),
    ])
    def test_irrigation_methods(self, method, expected):
        """Test irrigation methods and their long labels"""
        record = validate_task_record({"type": "irrigation", "field": "A1", "method": method})
        assert record.method == expected

    def test_unknown_irrigation_method(self):
        """Test a method outside the known set is rejected"""
        with pytest.raises(InvalidFieldValue) as exc:
            validate_task_record({"type": "irrigation", "field": "A1", "method": "Rain dance"})
        assert exc.value.field == "method"

    def test_chemical_type(self):
        """Test chemical type normalization and rejection"""
        record = validate_task_record({"type": "pesticide", "field": "A1", "chemicalType": "fungicide"})
        assert record.chemical_type == "Fungicide"

        with pytest.raises(InvalidFieldValue):
            validate_task_record({"type": "pesticide", "field": "A1", "chemicalType": "Fertilizer"})

    def test_structured_value_rejected(self):
        """Test attributes must be plain text"""
        with pytest.raises(InvalidFieldValue):
            validate_task_record({"type": "herbicide", "field": "A1", "quantity": {"litres": 2}})

    def test_non_mapping_rejected(self):
        """Test input must be an object"""
        with pytest.raises(ValidationError):
            validate_task_record(["irrigation"])

    def test_errors_carry_a_code(self):
        """Test every validation error reports the invalid_data code"""
        with pytest.raises(ValidationError) as exc:
            validate_task_record({"type": "plantation"})
        assert exc.value.to_dict()["error"] == "invalid_data"


class TestApplyPatch:
    """Test partial updates"""

    @pytest.fixture
    def record(self):
        return validate_task_record(
            {"type": "plantation", "date": "2024-05-01", "field": "A1", "plantName": "Tomato"},
            record_id="42",
            owner="alice",
        )

    def test_merge(self, record):
        """Test patched fields change and the rest are kept"""
        updated = apply_patch(record, {"variety": "Roma", "notes": "north rows"})

        assert updated.variety == "Roma"
        assert updated.notes == "north rows"
        assert updated.plant_name == "Tomato"
        assert updated.id == "42"
        assert updated.owner == "alice"
        assert record.variety == ""

    def test_type_is_immutable(self, record):
        """Test the variant type cannot change"""
        with pytest.raises(ImmutableField):
            apply_patch(record, {"type": "irrigation"})

    def test_same_type_allowed(self, record):
        """Test restating the current type is not a change"""
        assert apply_patch(record, {"type": "plantation"}).type == "plantation"

    def test_identity_ignored(self, record):
        """Test id and owner in a patch are ignored"""
        updated = apply_patch(record, {"id": "99", "owner": "bob"})
        assert updated.id == "42"
        assert updated.owner == "alice"

    def test_patch_is_revalidated(self, record):
        """Test a patch cannot introduce an invalid value"""
        with pytest.raises(InvalidDate):
            apply_patch(record, {"date": "2024-99-99"})
        with pytest.raises(MissingRequiredField):
            apply_patch(record, {"field": ""})

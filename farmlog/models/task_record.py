"""
Task record data models for FarmLog

A task record is one logged farm activity. Records are a tagged union keyed
by ``type``: every variant shares the common fields (id, owner, date, field,
notes) and carries only its own attribute set on top of them.

Python attribute names are snake_case; the wire format (API bodies and the
client snapshot) uses camelCase aliases.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Type, Union
from enum import Enum

from pydantic import BaseModel, Field, TypeAdapter, field_validator


def to_camel(name: str) -> str:
    """Convert a snake_case attribute name to its camelCase wire name"""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class TaskType(str, Enum):
    """Farm activity variants"""
    PLANT_MAINTENANCE = "plant-maintenance"
    TOOL_MAINTENANCE = "tool-maintenance"
    FERTIGATION = "fertigation"
    IRRIGATION = "irrigation"
    PESTICIDE = "pesticide"
    HERBICIDE = "herbicide"
    PLANTATION = "plantation"


class IrrigationMethod(str, Enum):
    """Irrigation methods"""
    DRIP = "Drip"
    SPRINKLER = "Sprinkler"
    FLOOD = "Flood"
    FURROW = "Furrow"
    CENTRE_PIVOT = "Centre Pivot"
    MANUAL = "Manual"


class ChemicalType(str, Enum):
    """Crop protection chemical types"""
    INSECTICIDE = "Insecticide"
    PESTICIDE = "Pesticide"
    FUNGICIDE = "Fungicide"


# Long labels offered by the logging form
IRRIGATION_METHOD_ALIASES = {
    "drip irrigation": IrrigationMethod.DRIP,
    "flood irrigation": IrrigationMethod.FLOOD,
    "furrow irrigation": IrrigationMethod.FURROW,
    "manual watering": IrrigationMethod.MANUAL,
}

VARIANT_LABELS = {
    TaskType.PLANT_MAINTENANCE: "Plant Maintenance",
    TaskType.TOOL_MAINTENANCE: "Tool Maintenance",
    TaskType.FERTIGATION: "Fertigation",
    TaskType.IRRIGATION: "Irrigation",
    TaskType.PESTICIDE: "Pesticide/Fungicide",
    TaskType.HERBICIDE: "Herbicide",
    TaskType.PLANTATION: "Plantation",
}

COMMON_FIELDS = ("id", "owner", "type", "date", "field", "notes")

DATE_FORMAT = "%Y-%m-%d"


def _normalize_choice(value: str, choices: Type[Enum], aliases: Optional[Dict[str, Enum]] = None) -> str:
    value = (value or "").strip()
    if not value:
        return ""
    for choice in choices:
        if choice.value.lower() == value.lower():
            return choice.value
    if aliases and value.lower() in aliases:
        return aliases[value.lower()].value
    allowed = ", ".join(choice.value for choice in choices)
    raise ValueError(f"'{value}' is not one of: {allowed}")


class TaskRecordBase(BaseModel):
    """
    Fields shared by every task variant
    """
    id: str = Field(default="", description="Opaque unique identifier")
    owner: Optional[str] = Field(None, description="Identity of the creating user")
    type: TaskType
    date: str = Field(..., description="Calendar date (YYYY-MM-DD)")
    field: str = Field(..., description="Field/plot identifier")
    notes: str = Field(default="", description="Free-text notes")

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Validate date is a YYYY-MM-DD calendar date"""
        datetime.strptime(v, DATE_FORMAT)
        return v

    @field_validator('field')
    @classmethod
    def validate_field(cls, v: str) -> str:
        """Validate field/plot is not blank"""
        if not v.strip():
            raise ValueError("field must not be blank")
        return v

    @classmethod
    def variant_fields(cls) -> Tuple[str, ...]:
        """Attribute names specific to this variant"""
        return tuple(name for name in cls.model_fields if name not in COMMON_FIELDS)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys, owner omitted when unset)"""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"
        use_enum_values = True


class MaintenanceRecord(TaskRecordBase):
    """Plant or tool maintenance"""
    type: Literal["plant-maintenance", "tool-maintenance"]
    equipment: str = ""
    issue: str = ""
    parts: str = ""
    time_spent: str = ""


class FertigationRecord(TaskRecordBase):
    """Fertilizer applied through irrigation"""
    type: Literal["fertigation"]
    fertilizer_name: str = ""
    quantity: str = ""
    duration: str = ""
    crop: str = ""


class IrrigationRecord(TaskRecordBase):
    """Watering"""
    type: Literal["irrigation"]
    method: str = ""
    duration: str = ""
    area: str = ""
    water_source: str = ""

    @field_validator('method')
    @classmethod
    def validate_method(cls, v: str) -> str:
        """Validate method is a known irrigation method (or empty)"""
        return _normalize_choice(v, IrrigationMethod, IRRIGATION_METHOD_ALIASES)


class PesticideRecord(TaskRecordBase):
    """Pesticide, fungicide or insecticide application"""
    type: Literal["pesticide"]
    chemical: str = ""
    chemical_type: str = ""
    quantity: str = ""
    method: str = ""
    crop: str = ""

    @field_validator('chemical_type')
    @classmethod
    def validate_chemical_type(cls, v: str) -> str:
        """Validate chemical type is a known type (or empty)"""
        return _normalize_choice(v, ChemicalType)


class HerbicideRecord(TaskRecordBase):
    """Herbicide application"""
    type: Literal["herbicide"]
    herbicide_name: str = ""
    quantity: str = ""
    area: str = ""


class PlantationRecord(TaskRecordBase):
    """Planting"""
    type: Literal["plantation"]
    plant_name: str = ""
    variety: str = ""
    number: str = ""
    area: str = ""


TaskRecord = Annotated[
    Union[
        MaintenanceRecord,
        FertigationRecord,
        IrrigationRecord,
        PesticideRecord,
        HerbicideRecord,
        PlantationRecord,
    ],
    Field(discriminator="type"),
]

VARIANT_MODELS: Dict[str, Type[TaskRecordBase]] = {
    TaskType.PLANT_MAINTENANCE.value: MaintenanceRecord,
    TaskType.TOOL_MAINTENANCE.value: MaintenanceRecord,
    TaskType.FERTIGATION.value: FertigationRecord,
    TaskType.IRRIGATION.value: IrrigationRecord,
    TaskType.PESTICIDE.value: PesticideRecord,
    TaskType.HERBICIDE.value: HerbicideRecord,
    TaskType.PLANTATION.value: PlantationRecord,
}

# Every variant attribute across all variants (attribute names, not aliases)
ALL_VARIANT_FIELDS: Tuple[str, ...] = tuple(dict.fromkeys(
    name for model in VARIANT_MODELS.values() for name in model.variant_fields()
))

_task_record_adapter = TypeAdapter(TaskRecord)
_task_record_list_adapter = TypeAdapter(List[TaskRecord])


def parse_task_record(data: Dict[str, Any]) -> TaskRecordBase:
    """Decode one stored or transmitted record (already validated once)"""
    return _task_record_adapter.validate_python(data)


def parse_task_records(data: List[Dict[str, Any]]) -> List[TaskRecordBase]:
    """Decode a list of stored or transmitted records"""
    return _task_record_list_adapter.validate_python(data)

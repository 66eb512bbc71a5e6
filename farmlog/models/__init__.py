"""
Data models for FarmLog

This module includes:
- Task record variants (Pydantic), shared by client and server
- Validation of untyped task input
"""

from .task_record import (
    TaskType,
    IrrigationMethod,
    ChemicalType,
    TaskRecord,
    TaskRecordBase,
    MaintenanceRecord,
    FertigationRecord,
    IrrigationRecord,
    PesticideRecord,
    HerbicideRecord,
    PlantationRecord,
    VARIANT_MODELS,
    VARIANT_LABELS,
    parse_task_record,
    parse_task_records
)

from .validation import (
    validate_task_record,
    apply_patch,
    parse_task_date,
    parse_task_type
)

__all__ = [
    # Task record variants
    'TaskType',
    'IrrigationMethod',
    'ChemicalType',
    'TaskRecord',
    'TaskRecordBase',
    'MaintenanceRecord',
    'FertigationRecord',
    'IrrigationRecord',
    'PesticideRecord',
    'HerbicideRecord',
    'PlantationRecord',
    'VARIANT_MODELS',
    'VARIANT_LABELS',
    'parse_task_record',
    'parse_task_records',

    # Validation
    'validate_task_record',
    'apply_patch',
    'parse_task_date',
    'parse_task_type'
]

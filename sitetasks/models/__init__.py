"""Model modules."""
from sitetasks.models.task import (
    EDITABLE_FIELDS,
    TASK_HEADERS,
    Task,
    TaskColumn,
    TaskPriority,
    TaskStatus,
)
from sitetasks.models.contractor import CONTRACTOR_HEADERS, Contractor, ContractorColumn

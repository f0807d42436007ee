"""Schema modules."""
from sitetasks.schemas.task import TaskBase, TaskCreate, TaskUpdate
from sitetasks.schemas.contractor import ContractorCreate, ProjectCreate
from sitetasks.schemas.email import WeeklyEmailConfig, WeeklyEmailRequest

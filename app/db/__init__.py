# app/db/__init__.py
# Import each module so its classes are registered on Base.metadata
from .models.category import CategoryRecord  # noqa: F401
from .models.task import TaskRecord  # noqa: F401
from .models.task_item import TaskItemRecord  # noqa: F401

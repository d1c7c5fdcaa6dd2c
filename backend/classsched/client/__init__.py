from classsched.client.api import ApiError, DuplicateStatus, ScheduleApiClient  # noqa: F401
from classsched.client.collection import ScheduleCollection, SortDirection, SortField  # noqa: F401
from classsched.client.form import ScheduleBoard, ScheduleFormController, ScheduleFormData  # noqa: F401
from classsched.client.onboarding import ProfileOnboarding, needs_onboarding  # noqa: F401

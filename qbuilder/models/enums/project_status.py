# qbuilder/models/enums/project_status.py
import enum


class ProjectStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


PROJECT_STATUS_TRANSITIONS: dict[ProjectStatus, frozenset[ProjectStatus]] = {
    ProjectStatus.active: frozenset({ProjectStatus.completed, ProjectStatus.cancelled}),
    ProjectStatus.completed: frozenset({ProjectStatus.active}),
    ProjectStatus.cancelled: frozenset({ProjectStatus.active}),
}


def can_transition(current: ProjectStatus, target: ProjectStatus) -> bool:
    return target in PROJECT_STATUS_TRANSITIONS[current]

from plantcare.models.user import User, UserSettings
from plantcare.models.plant import Plant, PlantTask, TaskTemplate
from plantcare.models.logs import NotificationLog, PipelineRun

__all__ = [
    "User",
    "UserSettings",
    "Plant",
    "PlantTask",
    "TaskTemplate",
    "NotificationLog",
    "PipelineRun",
]

"""
Care-reminder copy.

Task keys are an open string domain: the known kinds below drive default
labels, anything else is passed through unchanged. Message wording depends on
the user's persona and rotates with the scheduler's notification index so a
user nagged about the same task does not see identical text every time.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union

logger = logging.getLogger(__name__)


class TaskKind(str, Enum):
    WATERING = "watering"
    FERTILIZING = "fertilizing"
    PRUNING = "pruning"
    SPRAYING = "spraying"
    SUNLIGHT_ROTATION = "sunlight-rotation"


# Legacy spellings still present in older rows
_ALIASES = {
    "sunlightRotation": TaskKind.SUNLIGHT_ROTATION,
    "sunlight_rotation": TaskKind.SUNLIGHT_ROTATION,
    "sunRotation": TaskKind.SUNLIGHT_ROTATION,
}

DEFAULT_LABELS: dict[TaskKind, str] = {
    TaskKind.WATERING: "Water",
    TaskKind.FERTILIZING: "Fertilize",
    TaskKind.PRUNING: "Prune",
    TaskKind.SPRAYING: "Spray",
    TaskKind.SUNLIGHT_ROTATION: "Rotate",
}


def parse_task_key(task_key: str) -> Union[TaskKind, str]:
    """Return the known TaskKind for ``task_key`` or the raw key when it is unknown."""
    if task_key in _ALIASES:
        return _ALIASES[task_key]
    try:
        return TaskKind(task_key)
    except ValueError:
        return task_key


def resolve_task_label(task_key: str, templates: Optional[Mapping[str, str]] = None) -> str:
    """Template label, else the built-in label for a known kind, else the raw key."""
    if templates and task_key in templates:
        return templates[task_key]

    kind = parse_task_key(task_key)
    if isinstance(kind, TaskKind):
        if templates and kind.value in templates:
            return templates[kind.value]
        return DEFAULT_LABELS[kind]

    logger.debug("resolve_task_label: unknown task key %r, using it as the label", task_key)
    return task_key


@dataclass(frozen=True)
class NotificationMessage:
    title: str
    body: str


# Per kind and persona: the first entry is the standard reminder, the rest are
# the variations rotated through on later cycles. {plant} is the display name.
# PRIMARY is plain and actionable, SECONDARY speaks to a shared household,
# TERTIARY is encouraging.
_CARE_COPY: dict[TaskKind, dict[str, tuple[tuple[str, str], ...]]] = {
    TaskKind.WATERING: {
        "PRIMARY": (
            ("Time to water your {plant}!", "Your {plant} plant needs water today. Tap to mark it done."),
            ("Hydration check for {plant}", "Your {plant} is due for watering. Tap to mark it done."),
            ("Water your {plant} today", "Your {plant} plant needs water. Tap to mark it done."),
            ("Thirsty {plant} alert", "Your {plant} needs a drink. Tap to mark it done."),
        ),
        "SECONDARY": (
            ("🌿 Watering time for {plant}!",
             "Team effort needed! Your {plant} is thirsty. Who's taking care of it today?"),
            ("💧 {plant} needs water!", "Your {plant} is looking thirsty! Time for some H2O."),
            ("🌿 Water {plant} today!", "Your {plant} is ready for its daily drink!"),
            ("💦 {plant} watering time!", "Your {plant} is waiting for some refreshing water!"),
        ),
        "TERTIARY": (
            ("✨ Your {plant} needs a drink!", "Great job keeping your {plant} happy! Just a quick watering today."),
            ("✨ {plant} needs water!", "Your {plant} will be so happy after a good watering!"),
            ("💧 Water your {plant}!", "A little water will make your {plant} thrive!"),
            ("🌱 {plant} watering time!", "Your {plant} is ready for some love and water!"),
        ),
    },
    TaskKind.FERTILIZING: {
        "PRIMARY": (
            ("Fertilizer due for {plant}", "Your {plant} is ready for its nutrients. Tap to mark it done."),
            ("Nutrients due for {plant}", "Your {plant} needs fertilizer. Tap to mark it done."),
            ("Feed your {plant}", "Your {plant} is ready for nutrients. Tap to mark it done."),
            ("Fertilizer time for {plant}", "Your {plant} needs plant food. Tap to mark it done."),
        ),
        "SECONDARY": (
            ("🌱 Feed time for {plant}!", "Your {plant} is hungry for nutrients! Time to give it some plant food."),
            ("🌱 Feed {plant}!", "Your {plant} is hungry for some plant nutrients!"),
            ("🍃 {plant} needs food!", "Time to give your {plant} some delicious fertilizer!"),
            ("🌿 Nourish {plant}!", "Your {plant} is ready for its nutrient boost!"),
        ),
        "TERTIARY": (
            ("✨ Nourish your {plant}!", "Your {plant} will love the extra nutrients today. You're doing great!"),
            ("✨ Feed your {plant}!", "Your {plant} will love the extra nutrients!"),
            ("🌱 {plant} needs food!", "A little fertilizer will make your {plant} super happy!"),
            ("🍃 Nourish {plant}!", "Your {plant} is ready for its special plant meal!"),
        ),
    },
    TaskKind.SPRAYING: {
        "PRIMARY": (
            ("Misting time for {plant}", "Your {plant} needs humidity. Tap to mark it done."),
            ("Humidity needed for {plant}", "Your {plant} needs misting. Tap to mark it done."),
            ("Spray your {plant}", "Your {plant} needs humidity. Tap to mark it done."),
            ("Mist {plant} today", "Your {plant} needs a spray. Tap to mark it done."),
        ),
        "SECONDARY": (
            ("💧 Spritz time for {plant}!", "Your {plant} loves a good misting! Give it some refreshing spray."),
            ("💧 Spritz {plant}!", "Your {plant} loves a refreshing mist!"),
            ("🌿 Mist {plant}!", "Give your {plant} a nice humidity boost!"),
            ("💦 Spray {plant}!", "Your {plant} is ready for a gentle misting!"),
        ),
        "TERTIARY": (
            ("✨ Mist your {plant}!", "A gentle spray will make your {plant} feel refreshed and happy!"),
            ("✨ Mist your {plant}!", "A gentle spray will make your {plant} feel amazing!"),
            ("💧 {plant} needs mist!", "Your {plant} will love the refreshing humidity!"),
            ("🌿 Spritz {plant}!", "A little mist will make your {plant} super happy!"),
        ),
    },
    TaskKind.PRUNING: {
        "PRIMARY": (
            ("Pruning due for {plant}", "Your {plant} needs trimming. Tap to mark it done."),
            ("Trim {plant} today", "Your {plant} needs pruning. Tap to mark it done."),
            ("Prune your {plant}", "Your {plant} needs trimming. Tap to mark it done."),
            ("Cut {plant} back", "Your {plant} needs pruning. Tap to mark it done."),
        ),
        "SECONDARY": (
            ("✂️ Trim time for {plant}!", "Your {plant} is ready for a little haircut! Time to prune those leaves."),
            ("✂️ Trim {plant}!", "Your {plant} is ready for a little haircut!"),
            ("🌿 Prune {plant}!", "Time to give your {plant} a nice trim!"),
            ("🍃 Cut {plant}!", "Your {plant} will look great after some pruning!"),
        ),
        "TERTIARY": (
            ("✨ Shape your {plant}!", "A little pruning will help your {plant} grow even better!"),
            ("✨ Trim your {plant}!", "A little pruning will help your {plant} grow beautifully!"),
            ("✂️ {plant} needs trimming!", "Your {plant} will love the attention and care!"),
            ("🌿 Prune {plant}!", "A gentle trim will make your {plant} even more gorgeous!"),
        ),
    },
    TaskKind.SUNLIGHT_ROTATION: {
        "PRIMARY": (
            ("Rotate your {plant}", "Your {plant} needs to be rotated for even growth. Tap to mark it done."),
            ("Turn {plant} today", "Your {plant} needs rotation. Tap to mark it done."),
            ("Rotate your {plant}", "Your {plant} needs turning. Tap to mark it done."),
            ("Spin {plant} around", "Your {plant} needs rotation. Tap to mark it done."),
        ),
        "SECONDARY": (
            ("🌞 Turn your {plant}!", "Give your {plant} a quarter turn for balanced sunlight exposure!"),
            ("🌞 Turn {plant}!", "Give your {plant} a quarter turn for even growth!"),
            ("🔄 Rotate {plant}!", "Your {plant} needs a gentle spin for balanced light!"),
            ("🌿 Turn {plant}!", "A little rotation will help your {plant} grow evenly!"),
        ),
        "TERTIARY": (
            ("✨ Rotate your {plant}!", "A gentle turn will help your {plant} grow evenly on all sides!"),
            ("✨ Rotate your {plant}!", "A gentle turn will help your {plant} grow perfectly!"),
            ("🌞 {plant} needs turning!", "Your {plant} will love the balanced sunlight!"),
            ("🔄 Turn {plant}!", "A little rotation will make your {plant} super happy!"),
        ),
    },
}

# Keys outside TaskKind have no copy of their own; {label} is the resolved task label
_GENERIC_REMINDER = ("🌱 Task Due: {label}", "Time to {action} {plant}!")


def _copy_for(kind: TaskKind, persona: Optional[str], variation: int) -> tuple[str, str]:
    by_persona = _CARE_COPY[kind]
    options = by_persona.get(persona or "PRIMARY", by_persona["PRIMARY"])
    if variation == 0:
        return options[0]
    alternatives = options[1:]
    return alternatives[variation % len(alternatives)]


def build_care_reminder(
    plant_name: str,
    task_key: str,
    task_label: Optional[str] = None,
    persona: Optional[str] = "PRIMARY",
    variation: int = 0,
) -> NotificationMessage:
    """
    Reminder text for one overdue task.

    Known kinds use their persona copy: ``variation`` 0 is the standard
    reminder and any other value picks an alternative by modulo. Unknown keys
    get the generic reminder built from ``task_label`` (or the raw key).
    """
    kind = parse_task_key(task_key)
    if isinstance(kind, TaskKind):
        title, body = _copy_for(kind, persona, variation)
        return NotificationMessage(title=title.format(plant=plant_name), body=body.format(plant=plant_name))

    label = task_label or task_key
    title, body = _GENERIC_REMINDER
    values = {"label": label, "action": label.lower(), "plant": plant_name}
    return NotificationMessage(title=title.format(**values), body=body.format(**values))

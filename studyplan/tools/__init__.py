"""Agent tools for Google ADK."""

from studyplan.tools.planner_tools import (
    append_steps_to_planner_tool,
    create_planner_tool,
    edit_planner_steps_tool,
    get_today_tasks_tool,
    read_planners_tool,
    shift_planner_steps_tool,
    shift_steps_from_tool,
)

__all__ = [
    "append_steps_to_planner_tool",
    "create_planner_tool",
    "edit_planner_steps_tool",
    "get_today_tasks_tool",
    "read_planners_tool",
    "shift_planner_steps_tool",
    "shift_steps_from_tool",
]

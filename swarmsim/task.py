"""
task.py - Device tasks and the scripted task scenario

A Task is a closed tagged variant: Attack, Reconnect and Reposition carry a
destination point, Undefined carries nothing.

A Scenario is the time-ordered script of task assignments that the command
device broadcasts (or addresses to single devices) during a run.
"""

import bisect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from swarmsim.ids import BROADCAST_ID
from swarmsim.physics.geometry import Point3D


class TaskType(Enum):
    ATTACK = 'attack'
    RECONNECT = 'reconnect'
    REPOSITION = 'reposition'
    UNDEFINED = 'undefined'


@dataclass(frozen=True)
class Task:
    """
    Device task.

    Attributes:
        task_type: Kind of task
        destination: Target point for destination-bearing tasks, None for UNDEFINED
    """
    task_type: TaskType = TaskType.UNDEFINED
    destination: Optional[Point3D] = None

    def __post_init__(self):
        """Validate that destination presence matches the task type."""
        if self.task_type == TaskType.UNDEFINED and self.destination is not None:
            raise ValueError("Undefined task must not have a destination")
        if self.task_type != TaskType.UNDEFINED and self.destination is None:
            raise ValueError(f"{self.task_type.value} task requires a destination")

    @classmethod
    def attack(cls, destination: Point3D) -> 'Task':
        return cls(TaskType.ATTACK, destination)

    @classmethod
    def reconnect(cls, destination: Point3D) -> 'Task':
        return cls(TaskType.RECONNECT, destination)

    @classmethod
    def reposition(cls, destination: Point3D) -> 'Task':
        return cls(TaskType.REPOSITION, destination)

    @classmethod
    def undefined(cls) -> 'Task':
        return cls()

    def has_destination(self) -> bool:
        return self.destination is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.task_type.value,
            'destination': self.destination.to_list() if self.destination else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        destination = data.get('destination')
        return cls(
            TaskType(data['type']),
            Point3D.from_list(destination) if destination is not None else None,
        )


ScenarioEntry = Tuple[int, int, Task]


@dataclass
class Scenario:
    """
    Time-ordered list of (time_ms, device_id, task) assignments.

    A device_id of BROADCAST_ID addresses every device.
    """
    entries: List[ScenarioEntry] = field(default_factory=list)

    def __post_init__(self):
        self.entries = sorted(self.entries, key=lambda entry: entry[0])

    def add_entry(self, time_ms: int, device_id: int, task: Task):
        """Insert an entry, keeping time order (stable for equal times)."""
        times = [entry[0] for entry in self.entries]
        index = bisect.bisect_right(times, time_ms)
        self.entries.insert(index, (time_ms, device_id, task))

    def get_last_task(self, current_time: int, device_id: int) -> Optional[Task]:
        """
        Most recent task at or before current_time for a device.

        Args:
            current_time: Simulation time in milliseconds
            device_id: Device to look up (entries for BROADCAST_ID also match)

        Returns:
            Task, or None if no entry applies yet
        """
        for time_ms, entry_device_id, task in reversed(self.entries):
            if time_ms > current_time:
                continue
            if entry_device_id in (device_id, BROADCAST_ID):
                return task
        return None

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entries': [
                [time_ms, device_id, task.to_dict()]
                for time_ms, device_id, task in self.entries
            ]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Scenario':
        return cls([
            (int(time_ms), int(device_id), Task.from_dict(task))
            for time_ms, device_id, task in data.get('entries', [])
        ])

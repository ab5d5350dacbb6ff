"""Automation engine -- executes tasks, scores results and drives the loop.

Public API::

    from src.engine import (
        AutomationOrchestrator,
        DecisionEngine,
        EventLog,
        FileRenderer,
        QualityScorer,
        TaskExecutor,
        run_automation,
    )
"""

from src.engine.decision import DecisionEngine
from src.engine.events import EventLog
from src.engine.executor import TaskExecutor
from src.engine.orchestrator import AutomationOrchestrator, run_automation
from src.engine.renderer import FileRenderer, RenderedFile
from src.engine.scorer import QualityScorer

__all__ = [
    "AutomationOrchestrator",
    "DecisionEngine",
    "EventLog",
    "FileRenderer",
    "QualityScorer",
    "RenderedFile",
    "TaskExecutor",
    "run_automation",
]

# common/orchestrator.py
# -*- coding: utf-8 -*-
"""
Centralized orchestrator for running a sequence of idempotent steps.

Each step is a check-then-act function that returns a StepOutcome: either the
target state was already present (ALREADY_SATISFIED) or the step changed the
host to reach it (PERFORMED).
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pronghorn_installer.exceptions import InstallerError


class StepOutcome(str, Enum):
    ALREADY_SATISFIED = "already_satisfied"
    PERFORMED = "performed"


class Orchestrator:
    """A centralized orchestrator to run a series of defined steps."""

    def __init__(
        self,
        app_settings: Any,
        orchestrator_logger: Optional[logging.Logger] = None,
    ):
        """
        Initializes the Orchestrator.

        Args:
            app_settings: The application settings object.
            orchestrator_logger: An optional logger instance.
        """
        self.app_settings = app_settings
        self.logger = orchestrator_logger or logging.getLogger(__name__)
        self.tasks: List[Dict[str, Any]] = []
        # Shared context for steps to pass state between each other
        self.context: Dict[str, Any] = {}
        self.performed: List[str] = []
        self.satisfied: List[str] = []

    def add_task(
        self,
        name: str,
        func: Callable,
        args: Optional[List[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        fatal: bool = True,
    ):
        """
        Adds a step to the execution list.

        Args:
            name: A human-readable name for the step.
            func: The function to execute. It receives ``context`` and
                ``app_settings`` keyword arguments in addition to its own.
            args: Positional arguments to pass to the function.
            kwargs: Keyword arguments to pass to the function.
            fatal: If True, a failure halts the run with InstallerError.
        """
        self.tasks.append({
            "name": name,
            "func": func,
            "args": args or [],
            "kwargs": kwargs or {},
            "fatal": fatal,
        })
        self.logger.debug(f"Task '{name}' added to the queue.")

    def run(self) -> bool:
        """
        Executes all added steps in sequence.

        Returns:
            True when every fatal step succeeded.

        Raises:
            InstallerError: When a fatal step raises.
        """
        self.logger.debug("Orchestration started.")
        for i, task in enumerate(self.tasks):
            task_name = task["name"]
            self.logger.debug(
                f"--- Stage {i + 1}: Running task '{task_name}' ---"
            )

            try:
                task["kwargs"]["context"] = self.context
                task["kwargs"]["app_settings"] = self.app_settings

                result = task["func"](*task["args"], **task["kwargs"])
                self.context[f"{task_name}_result"] = result

                if result == StepOutcome.ALREADY_SATISFIED:
                    self.satisfied.append(task_name)
                else:
                    self.performed.append(task_name)

            except Exception as e:
                if task.get("fatal", True):
                    self.logger.debug(
                        f"Task '{task_name}' failed", exc_info=True
                    )
                    if isinstance(e, InstallerError):
                        raise
                    raise InstallerError(
                        f"Step '{task_name}' failed: {e}"
                    ) from e
                self.logger.warning(
                    f"Task '{task_name}' failed: {e}. Continuing, it is non-fatal."
                )

        self.logger.debug(
            f"Orchestration finished: {len(self.performed)} performed, "
            f"{len(self.satisfied)} already satisfied."
        )
        return True

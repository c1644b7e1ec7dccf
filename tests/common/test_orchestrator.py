# tests/common/test_orchestrator.py
# -*- coding: utf-8 -*-
"""
Tests for the centralized orchestrator module.
"""

from unittest.mock import MagicMock

import pytest

from common.orchestrator import Orchestrator, StepOutcome
from pronghorn_installer.exceptions import InstallerError


class TestOrchestrator:
    """Tests for the Orchestrator class."""

    def test_init(self):
        app_settings = MagicMock()
        logger = MagicMock()

        orchestrator = Orchestrator(app_settings, logger)

        assert orchestrator.app_settings == app_settings
        assert orchestrator.logger == logger
        assert orchestrator.tasks == []
        assert orchestrator.context == {}

    def test_add_task(self):
        orchestrator = Orchestrator(MagicMock(), MagicMock())

        task_func = MagicMock()
        orchestrator.add_task(
            "Test Task",
            task_func,
            ["arg1", "arg2"],
            {"kwarg1": "value1"},
            False,
        )

        assert len(orchestrator.tasks) == 1
        task = orchestrator.tasks[0]
        assert task["name"] == "Test Task"
        assert task["func"] == task_func
        assert task["args"] == ["arg1", "arg2"]
        assert task["kwargs"] == {"kwarg1": "value1"}
        assert task["fatal"] is False

    def test_run_passes_context_and_settings(self):
        app_settings = MagicMock()
        orchestrator = Orchestrator(app_settings, MagicMock())
        task = MagicMock(return_value=StepOutcome.PERFORMED)
        orchestrator.add_task("step", task, ["positional"], {"own": 1})

        assert orchestrator.run() is True

        task.assert_called_once_with(
            "positional",
            own=1,
            context=orchestrator.context,
            app_settings=app_settings,
        )
        assert orchestrator.context["step_result"] == StepOutcome.PERFORMED

    def test_run_records_outcomes(self):
        orchestrator = Orchestrator(MagicMock(), MagicMock())
        orchestrator.add_task(
            "present", MagicMock(return_value=StepOutcome.ALREADY_SATISFIED)
        )
        orchestrator.add_task("made", MagicMock(return_value=StepOutcome.PERFORMED))

        orchestrator.run()

        assert orchestrator.satisfied == ["present"]
        assert orchestrator.performed == ["made"]

    def test_steps_share_context(self):
        orchestrator = Orchestrator(MagicMock(), MagicMock())

        def first(context, app_settings):
            context["value"] = 41
            return StepOutcome.PERFORMED

        def second(context, app_settings):
            context["value"] += 1
            return StepOutcome.PERFORMED

        orchestrator.add_task("first", first)
        orchestrator.add_task("second", second)
        orchestrator.run()

        assert orchestrator.context["value"] == 42

    def test_run_failure_fatal(self):
        orchestrator = Orchestrator(MagicMock(), MagicMock())
        task1 = MagicMock(side_effect=Exception("Task 1 failed"))
        task2 = MagicMock()
        orchestrator.add_task("Task 1", task1)
        orchestrator.add_task("Task 2", task2)

        with pytest.raises(InstallerError, match="Step 'Task 1' failed: Task 1 failed"):
            orchestrator.run()

        task2.assert_not_called()

    def test_run_failure_keeps_installer_error(self):
        orchestrator = Orchestrator(MagicMock(), MagicMock())
        error = InstallerError("Failed to generate APP_KEY")
        orchestrator.add_task("environment", MagicMock(side_effect=error))

        with pytest.raises(InstallerError) as excinfo:
            orchestrator.run()

        assert excinfo.value is error

    def test_run_failure_non_fatal(self):
        logger = MagicMock()
        orchestrator = Orchestrator(MagicMock(), logger)
        task1 = MagicMock(side_effect=Exception("Task 1 failed"))
        task2 = MagicMock(return_value=StepOutcome.PERFORMED)
        orchestrator.add_task("Task 1", task1, fatal=False)
        orchestrator.add_task("Task 2", task2)

        assert orchestrator.run() is True

        task2.assert_called_once()
        logger.warning.assert_called_once()

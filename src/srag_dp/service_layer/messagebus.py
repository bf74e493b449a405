"""Message bus for srag_dp batch jobs following Cosmic Python pattern."""

from __future__ import annotations
import logging
from typing import Callable, Dict, Type, Union, TYPE_CHECKING

from shared.domain.commands import Command
from srag_dp.domain.commands import CalculateMetricSnapshots, ImportCases, SeedSampleCases
from srag_dp.service_layer import handlers

if TYPE_CHECKING:
    from srag_dp.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)

Message = Union[ImportCases, SeedSampleCases, CalculateMetricSnapshots]


def handle(
    message: Message,
    uow: AbstractUnitOfWork,
):
    """Handle a command with its registered handler and return the handler result."""
    if not isinstance(message, Command):
        raise TypeError(f"{message} was not a Command")
    return handle_command(message, uow)


def handle_command(
    command: Command,
    uow: AbstractUnitOfWork,
):
    """Handle command by calling the registered command handler."""
    logger.debug(f"handling command {command}")
    try:
        handler = COMMAND_HANDLERS[type(command)]
    except KeyError:
        raise ValueError(f"No handler registered for command {type(command).__name__}")

    try:
        return handler(command, uow=uow)
    except Exception:
        logger.exception("Exception handling command %s", command)
        raise


# Command handlers - single handler per command type
COMMAND_HANDLERS = {
    ImportCases: handlers.import_cases,
    SeedSampleCases: handlers.seed_sample_cases,
    CalculateMetricSnapshots: handlers.calculate_metric_snapshots,
}  # type: Dict[Type[Command], Callable]

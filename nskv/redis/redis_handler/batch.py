"""
Batch execution: many commands, one round trip.

Commands are queued into a fresh pipeline (non-atomic) or MULTI/EXEC
transaction (atomic) and executed once; replies come back in submission order
as ``BatchReply(error, result)`` pairs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..errors import BatchError
from .dispatcher import CommandDispatcher
from .utils.commands import BatchMode, BatchReply, BatchTarget, Command

logger = logging.getLogger("RedisBatch")

CommandLike = Command | Sequence[Any]


class BatchExecutor:
    """Queues commands through the dispatcher and executes them together."""

    def __init__(self, dispatcher: CommandDispatcher):
        self.dispatcher = dispatcher

    async def execute(
        self,
        commands: Sequence[CommandLike],
        mode: BatchMode = BatchMode.PIPELINE,
    ) -> list[BatchReply]:
        """
        Execute ``commands`` as one batch.

        A single command skips batching and runs directly: its failure is
        raised, not returned in the error slot.
        """
        cmds = [Command.coerce(c) for c in commands]
        if not cmds:
            return []

        if len(cmds) == 1:
            cmd = cmds[0]
            result = await self.dispatcher.dispatch(cmd.method, cmd.key, *cmd.args)
            return [BatchReply(None, result)]

        mode = BatchMode(mode)
        connection = self.dispatcher.connection
        async with connection.pipeline(
            transaction=mode is BatchMode.TRANSACTION
        ) as pipe:
            target = BatchTarget(pipe, mode)
            for cmd in cmds:
                await self.dispatcher.dispatch(
                    cmd.method, cmd.key, *cmd.args, target=target
                )
            raw = await pipe.execute(raise_on_error=False)

        replies = [
            BatchReply(r, None) if isinstance(r, Exception) else BatchReply(None, r)
            for r in raw
        ]
        failed = sum(1 for r in replies if r.error is not None)
        if failed:
            logger.warning(f"{mode.value}: {failed}/{len(replies)} commands failed")
        else:
            logger.debug(f"{mode.value}: executed {len(replies)} commands")
        return replies

    async def execute_values(
        self,
        commands: Sequence[CommandLike],
        mode: BatchMode = BatchMode.PIPELINE,
        *,
        ignore_errors: bool = False,
    ) -> list[Any]:
        """
        Execute ``commands`` and return bare results.

        Raises BatchError if any command failed, unless ``ignore_errors`` is
        set, in which case failed slots read as None.
        """
        replies = await self.execute(commands, mode)
        if not ignore_errors and any(r.error is not None for r in replies):
            raise BatchError(replies)
        return [r.result for r in replies]

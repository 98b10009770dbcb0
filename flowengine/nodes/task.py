"""Task node implementation."""

import logging

from flowengine.core.state import ActionParams
from flowengine.nodes.base import BaseNode

logger = logging.getLogger(__name__)


class TaskNode(BaseNode):
    """General purpose step with no business logic of its own.

    Useful as a routing point for conditional edges and as the base class
    for custom steps that only need to override ``action``.
    """

    type_name = "TaskNode"

    async def action(self, params: ActionParams) -> None:
        logger.debug("Task %s ran node '%s'", params.task_id, self.node_id)
        return None

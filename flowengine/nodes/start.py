"""Start node implementation.

Start nodes seed a fresh run. They never receive incoming edges, so they
run exactly once per run and then fan out to every passing outgoing edge.
"""

import logging

from flowengine.core.state import ActionParams
from flowengine.nodes.base import BaseNode

logger = logging.getLogger(__name__)


class StartNode(BaseNode):
    """Entry point of a flow.

    Registered under the default start-node type. The action does nothing
    besides logging; the node exists to carry the run's first edges.
    """

    type_name = "StartNode"

    async def action(self, params: ActionParams) -> None:
        logger.debug("Execution %s started at node '%s'", params.execution_id, self.node_id)
        return None

"""API resources."""

from clusterops.resources.nodes import Nodes
from clusterops.resources.pods import Pods
from clusterops.resources.scheduler import Scheduler, SchedulingAlgorithm

__all__ = [
    "Nodes",
    "Pods",
    "Scheduler",
    "SchedulingAlgorithm",
]

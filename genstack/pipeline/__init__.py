"""
Pipeline module: deferred computation graph and the deploy pipeline of a
fitted stack.
"""

from .deploy import DeployPipeline, build_deploy_pipeline
from .graph import Node, Source, evaluate, node, source

__all__ = [
    "DeployPipeline",
    "build_deploy_pipeline",
    "Node",
    "Source",
    "evaluate",
    "node",
    "source",
]

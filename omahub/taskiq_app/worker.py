"""Broker for ``taskiq worker``, loaded with the prune task registered."""

from omahub.taskiq_app import tasks
from omahub.taskiq_app.broker import broker

__all__ = ["broker", "tasks"]

"""Dispatch engine — ordered layers, ``next()`` chaining and route handles.

Routers hold an engine; they do not extend one.
"""

from perch.dispatch.engine import Engine, Stack
from perch.dispatch.layer import Handler, Layer, Next
from perch.dispatch.request import Request
from perch.dispatch.route import ALL, METHODS, RouteHandle

__all__ = ["ALL", "METHODS", "Engine", "Handler", "Layer", "Next", "Request", "RouteHandle", "Stack"]

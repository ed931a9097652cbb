"""Built-in steps package. Import to register all built-in steps.

Conditions are not a step: the executor evaluates them itself.
"""

from flowrun.steps.builtin.http_request import http_request_step
from flowrun.steps.builtin.log import log_step
from flowrun.steps.builtin.slack import SendSlackMessageStep

__all__ = [
    "http_request_step",
    "log_step",
    "SendSlackMessageStep",
]

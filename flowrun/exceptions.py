"""Typed exception hierarchy. Every error flowrun can raise."""


class FlowrunError(Exception):
    """Base exception for all flowrun errors."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


# ── Graph ───────────────────────────────────────────────────────────────────


class GraphError(FlowrunError):
    """The workflow graph cannot be executed at all (e.g. no trigger node)."""
    pass


class GraphValidationError(GraphError):
    """Graph structure failed validation."""
    def __init__(self, message: str, violations: list[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.violations = violations or []


class WorkflowFileError(FlowrunError):
    """A workflow definition file could not be read or parsed."""
    def __init__(self, message: str, path: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.path = path


# ── Node configuration ──────────────────────────────────────────────────────


class ConfigurationError(FlowrunError):
    """A node's configuration is unusable."""
    def __init__(self, message: str, node_id: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.node_id = node_id


class UnknownActionType(ConfigurationError):
    """No step implementation is registered for the action type."""
    def __init__(self, message: str, action_type: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.action_type = action_type


class ConditionError(ConfigurationError):
    """A condition expression was rejected or could not be evaluated."""
    def __init__(self, message: str, expression: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.expression = expression


# ── Steps ───────────────────────────────────────────────────────────────────


class StepError(FlowrunError):
    """A step implementation failed."""
    def __init__(self, message: str, step_name: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.step_name = step_name


class StepNotFound(StepError):
    """Requested step is not in the registry."""
    pass


class ExternalCallError(StepError):
    """An outbound call made by a step failed."""
    def __init__(self, message: str, status_code: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


# ── Logging ─────────────────────────────────────────────────────────────────


class LoggingError(FlowrunError):
    """The execution log sink rejected a write. Never fatal to a run."""
    def __init__(self, message: str, execution_id: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.execution_id = execution_id


# ── Credentials ─────────────────────────────────────────────────────────────


class CredentialError(FlowrunError):
    """Credential encryption, decryption or lookup failed."""
    def __init__(self, message: str, credential_id: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.credential_id = credential_id


class CredentialNotFound(CredentialError):
    """Requested integration does not exist or is not accessible by this user."""
    pass

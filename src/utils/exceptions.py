class BuildLoopError(Exception):
    """Base exception for the build automation loop."""


class UnsupportedTaskError(BuildLoopError):
    def __init__(self, task_type: str):
        self.task_type = task_type
        super().__init__(f"No engine found for task type: {task_type}")


class ExecutionFailure(BuildLoopError):
    def __init__(self, task_id: str, detail: str):
        self.task_id = task_id
        super().__init__(f"Task '{task_id}' failed: {detail}")


class ScoringError(BuildLoopError):
    def __init__(self, detail: str):
        super().__init__(f"Scoring failed: {detail}")


class DecisionAmbiguousError(BuildLoopError):
    pass


class OrchestratorFault(BuildLoopError):
    pass


class InvalidTransitionError(BuildLoopError):
    def __init__(self, subject: str, from_state: str, to_state: str):
        self.subject = subject
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid {subject} transition: {from_state} -> {to_state}"
        )


class PlanValidationError(BuildLoopError):
    pass


class LLMError(BuildLoopError):
    def __init__(self, provider: str, detail: str):
        self.provider = provider
        super().__init__(f"LLM error ({provider}): {detail}")


class SessionNotFoundError(BuildLoopError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"No automation session found: {session_id}")


class RepositoryPathError(BuildLoopError):
    def __init__(self, repo_path: str):
        self.repo_path = repo_path
        super().__init__(f"Repository path is outside the workspace: {repo_path}")

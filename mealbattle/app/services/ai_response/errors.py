from typing import Optional, Sequence


class AIResponseError(ValueError):
    """Base class for failures inside the AI response pipeline."""


class AIResponseParseError(AIResponseError):
    def __init__(self, message: str, strategy: str):
        super().__init__(f"{message} (last strategy: {strategy})")
        self.strategy = strategy


class AIResponseValidationError(AIResponseError):
    def __init__(self, kind: Optional[str], missing: Sequence[str]):
        missing_list = ", ".join(missing) or "content"
        super().__init__(f"{kind or 'response'} is missing required fields: {missing_list}")
        self.kind = kind
        self.missing = list(missing)

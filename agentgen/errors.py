"""Error taxonomy shared by the interview, blueprint, pack and merge layers."""


class AgentgenError(Exception):
    """Base class for every error agentgen raises on purpose."""


class QuestionGraphError(AgentgenError, ValueError):
    """A question definition is broken (authoring error caught at load time)."""


class TemplateLoadError(AgentgenError, ValueError):
    """A pack identifier is unsafe or the pack's files are invalid."""

    def __init__(self, pack_id: str, reason: str):
        super().__init__(f"Failed to load pack '{pack_id}': {reason}")
        self.pack_id = pack_id
        self.reason = reason


class TemplateNotFound(AgentgenError, LookupError):
    def __init__(self, pack_id: str):
        super().__init__(f"Pack not found: {pack_id}")
        self.pack_id = pack_id


class InvalidAnswer(AgentgenError, ValueError):
    """An answer failed its question's validation rule."""

    def __init__(self, question_id: str, rule: str, message: str):
        super().__init__(f"Invalid answer for '{question_id}' ({rule}): {message}")
        self.question_id = question_id
        self.rule = rule
        self.message = message


class IncompleteAnswer(AgentgenError, ValueError):
    """A visible question needed a value and none could be obtained."""

    def __init__(self, question_id: str, message: str = "a value is required"):
        super().__init__(f"Missing answer for '{question_id}': {message}")
        self.question_id = question_id
        self.message = message


class BlueprintLoadError(AgentgenError, ValueError):
    """A persisted blueprint could not be read back."""


class BlueprintRejected(AgentgenError):
    """The constraint validator reported one or more violations.

    The violations are kept as a list so callers can render them per field.
    """

    def __init__(self, violations: list):
        self.violations = list(violations)
        summary = "; ".join(f"{v.path}: {v.message}" for v in self.violations)
        super().__init__(f"Blueprint rejected ({len(self.violations)} violations): {summary}")


class MalformedDocument(AgentgenError):
    """Managed-region markers in an existing document are inconsistent."""

    def __init__(self, message: str, marker: str, line: int):
        super().__init__(f"{message} (line {line}: {marker.strip()})")
        self.marker = marker
        self.line = line

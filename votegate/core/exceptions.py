from typing import Sequence


class VotegateError(Exception):
    """
    Base exception for all authorization engine failures.
    """

    pass


class ConfigurationError(VotegateError):
    """
    Raised at build time when the hierarchy, voters or strategy are misconfigured.
    """

    pass


class HierarchyCycleError(ConfigurationError):
    """
    Raised when a label hierarchy implies a label from itself.
    """

    def __init__(self, path: Sequence[str]):
        self.path = tuple(path)
        super().__init__("Cyclic label hierarchy: " + " -> ".join(self.path))


class VoterError(VotegateError):
    """
    Raised when a voter fails and degrading to abstain is disabled.
    """

    def __init__(self, voter_id: str, attribute: str):
        self.voter_id = voter_id
        self.attribute = attribute
        super().__init__(f"Voter '{voter_id}' failed while voting on '{attribute}'")

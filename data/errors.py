"""Errors raised at the persistence boundary."""


class PersistenceError(RuntimeError):
    """A read or write against the record store failed; the caller may retry."""


class ScenarioNotFoundError(PersistenceError):
    def __init__(self, scenario_id: str) -> None:
        super().__init__(f"Scenario {scenario_id} not found")
        self.scenario_id = scenario_id


class ScenarioCorruptError(PersistenceError):
    def __init__(self, scenario_id: str, reason: str) -> None:
        super().__init__(f"Scenario {scenario_id} is corrupt: {reason}")
        self.scenario_id = scenario_id
        self.reason = reason

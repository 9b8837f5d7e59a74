# services/errors.py


class PairTradeError(Exception):
    """Base class for domain errors raised by the services layer."""


class NotFoundError(PairTradeError):
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ValidationError(PairTradeError):
    """Input passed schema validation but is not acceptable to the domain."""


class PairAlreadySettledError(PairTradeError):
    def __init__(self, pair_id: int):
        super().__init__("Pair is already settled")
        self.pair_id = pair_id


class DuplicateEmailError(PairTradeError):
    def __init__(self):
        super().__init__("Email is already registered")

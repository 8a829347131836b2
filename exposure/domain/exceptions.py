"""Domain semantic exceptions."""


class DomainError(Exception):
    """Base domain exception."""


class LocationUnavailable(DomainError):
    """Raised when no device position could be acquired in time."""


class PlanNotFound(DomainError):
    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Exposure plan not found: {plan_id}")


class TargetNotFound(DomainError):
    def __init__(self, target_id: str):
        self.target_id = target_id
        super().__init__(f"Exposure target not found: {target_id}")


class JourneyNotFound(DomainError):
    def __init__(self, journey_id: str):
        self.journey_id = journey_id
        super().__init__(f"Journey not found: {journey_id}")


class InvalidEdit(DomainError):
    """Raised when a manual plan edit is semantically invalid."""


class StoreWriteFailed(DomainError):
    def __init__(self, operation: str, error: str):
        self.operation = operation
        self.error = error
        super().__init__(f"{operation} failed: {error}")

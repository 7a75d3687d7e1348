"""
Calculation engine error taxonomy.

Errors propagate to the caller unmodified; mapping them to HTTP responses is
the API layer's job.
"""


class CalculationError(ValueError):
    """Base class for all engine failures."""

    code = "CALCULATION_ERROR"


class ValidationError(CalculationError):
    """Bad input data caught before computation."""

    code = "VALIDATION_ERROR"


class MissingConfigurationError(CalculationError):
    """Required configuration is absent for the requested period."""

    code = "MISSING_CONFIGURATION"


class AllocationError(CalculationError):
    """Cost allocation cannot be performed."""

    code = "ALLOCATION_ERROR"


class InvalidEquipmentConfiguration(ValidationError):
    def __init__(self, equipment_id: str, reason: str):
        self.equipment_id = equipment_id
        self.reason = reason
        super().__init__(f"Equipment {equipment_id}: {reason}")


class InvalidAllocationMethod(ValidationError):
    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unknown cost allocation method: {method}")


class InvalidScenario(ValidationError):
    pass


class MissingOperatingParameters(MissingConfigurationError):
    def __init__(self, project_id: str, year: int, month: int):
        self.project_id = project_id
        self.year = year
        self.month = month
        super().__init__(
            f"No operating parameters for project {project_id} "
            f"in {year:04d}-{month:02d} and no default parameters"
        )


class NoActiveMembers(AllocationError):
    def __init__(self, total_cost=None):
        self.total_cost = total_cost
        super().__init__("Cannot allocate cost: project has no active members")

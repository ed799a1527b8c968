class TTPError(Exception):
    """Base for all ttp_ga exceptions."""

    pass


class ConfigurationError(TTPError):
    """Invalid hyperparameters or engine wiring."""

    pass


class InvariantViolation(TTPError):
    """A genotype or ranking invariant was broken."""

    pass


class EvolutionError(TTPError):
    """The search could not make progress (e.g. no feasible genotype found)."""

    pass


class InstanceFormatError(TTPError):
    """A TTP instance file could not be parsed."""

    pass

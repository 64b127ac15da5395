"""Errors raised while deriving bookable slots from availability rules."""


class SchedulingError(Exception):
    """Base class for scheduling errors."""


class InvalidArgumentError(SchedulingError, ValueError):
    """A caller supplied an unusable argument (blank mentor id, bad horizon)."""


class MalformedRuleError(SchedulingError):
    """A stored availability rule cannot be expanded into slots.

    These are collected and reported, never raised out of slot resolution.
    """

    def __init__(self, rule_id: str | None, reason: str):
        super().__init__(f'Availability rule {rule_id or "<unsaved>"} is malformed: {reason}')
        self.rule_id = rule_id
        self.reason = reason

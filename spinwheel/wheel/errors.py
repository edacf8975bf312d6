class WheelError(Exception):
    pass


class WheelValidationError(WheelError):
    pass


class TokenNotFoundError(WheelError):
    pass


class TokenAlreadyUsedError(WheelError):
    pass


class TokenExpiredError(WheelError):
    pass


class TokenConflictError(WheelError):
    pass


class TokenGenerationError(WheelError):
    def __init__(self, *, created: int, requested: int) -> None:
        super().__init__(
            f"Failed to generate a unique code for token {created + 1} of {requested}; "
            "the batch was rolled back and no tokens were issued."
        )
        self.created = created
        self.requested = requested


class PrizeTableConfigurationError(WheelError):
    pass


class SpinRateLimitedError(WheelError):
    pass

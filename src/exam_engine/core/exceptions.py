class InvalidConfigurationError(ValueError):
    """Input rejected before any computation takes place."""


class ImmutableVariantError(Exception):
    """Answer keys cannot change once results reference a variant."""

    def __init__(self, reason: str, variant_codes: list[str]) -> None:
        self.reason = reason
        self.variant_codes = variant_codes
        super().__init__(reason)

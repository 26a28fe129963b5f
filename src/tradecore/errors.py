"""Error taxonomy shared by indicators, detectors, the gate and the simulator."""

from __future__ import annotations


class TradeCoreError(Exception):
    """Base class for all library errors."""


class InsufficientDataError(TradeCoreError):
    def __init__(self, name: str, required: int, got: int) -> None:
        super().__init__(f"Not enough data for {name}: need {required}, got {got}")
        self.name = name
        self.required = required
        self.got = got


class NotInitializedError(TradeCoreError):
    def __init__(self, name: str) -> None:
        super().__init__(f"{name} not initialized, call calculate() first")
        self.name = name


class InvalidConfigurationError(TradeCoreError, ValueError):
    pass


class InvalidCandleError(TradeCoreError, ValueError):
    pass


class PnLInputError(TradeCoreError, ValueError):
    pass
